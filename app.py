#!/usr/bin/env python3

import aws_cdk as cdk

from pipeline_stack import PipelineStack
from serverless_journey_stack import ServerlessJourneyStack

app = cdk.App()
ServerlessJourneyStack(
    app,
    "ServerlessJourneyStack",
)

PipelineStack(app, "PipelineStack")

app.synth()
