"""
Slack /today command backed by Todoist.

The FastAPI app lives at slack_today.main:app and the AWS Lambda entry point
at slack_today.aws_lambda.handler; both run the pipeline in slack_today.command.
"""
