import logging
import subprocess
from pathlib import Path

import jsii
from aws_cdk import BundlingOptions, ILocalBundling
from aws_cdk import aws_lambda as _lambda
from constructs import Construct

logger = logging.getLogger(__name__)

LAYER_SOURCE_PATH = "layers/journey_layer"


@jsii.implements(ILocalBundling)
class PythonLocalBundling:
    """requirements.txt をローカルの uv / pip で Layer 形式に展開する

    どちらも使えない場合は False を返し、CDK に Docker でのバンドリングを任せる。
    """

    def __init__(self, source_path: str, requirements_file: str = "requirements.txt") -> None:
        self.source_path = source_path
        self.requirements_file = requirements_file

    def try_bundle(self, output_dir: str, options: BundlingOptions) -> bool:
        del options  # unused
        requirements_path = Path(self.source_path) / self.requirements_file
        target_dir = Path(output_dir) / "python"

        if not requirements_path.exists():
            logger.warning("requirements file not found: %s", requirements_path)
            return False

        for command in self._install_commands(requirements_path, target_dir):
            if self._run(command):
                return True

        logger.warning("Local bundling failed, falling back to Docker")
        return False

    def _install_commands(
        self, requirements_path: Path, target_dir: Path
    ) -> list[list[str]]:
        # uv を優先する
        return [
            [
                "uv",
                "pip",
                "install",
                "-r",
                str(requirements_path),
                "--target",
                str(target_dir),
                "--quiet",
            ],
            [
                "pip",
                "install",
                "-r",
                str(requirements_path),
                "-t",
                str(target_dir),
                "--quiet",
            ],
        ]

    def _run(self, command: list[str]) -> bool:
        installer = command[0]
        try:
            logger.info("Trying local bundling with %s...", installer)
            subprocess.run(command, check=True)
        except FileNotFoundError:
            logger.debug("%s not found", installer)
            return False
        except subprocess.CalledProcessError as e:
            logger.debug("%s install failed: %s", installer, e)
            return False
        logger.info("Local bundling with %s succeeded", installer)
        return True


class Layers(Construct):
    """Lambda Layers Construct

    Powertools と pydantic をまとめた依存ライブラリ Layer を提供する。
    """

    def __init__(
        self, scope: Construct, id: str, source_path: str = LAYER_SOURCE_PATH
    ) -> None:
        super().__init__(scope, id)

        self.common_layer = _lambda.LayerVersion(
            self,
            "JourneyDependenciesLayer",
            code=_lambda.Code.from_asset(
                source_path,
                bundling=BundlingOptions(
                    image=_lambda.Runtime.PYTHON_3_14.bundling_image,
                    command=[
                        "bash",
                        "-c",
                        "pip install -r requirements.txt -t /asset-output/python",
                    ],
                    local=PythonLocalBundling(source_path),
                ),
            ),
            compatible_runtimes=[_lambda.Runtime.PYTHON_3_14],
            description="Journey service runtime dependencies",
        )
