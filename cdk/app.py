#!/usr/bin/env python3
import logging
import os
import aws_cdk as cdk
from dotenv import load_dotenv
from aws_minecraft_server import MinecraftServerSettings, MinecraftStack

# .envファイルを読み込み
load_dotenv()

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = cdk.App()

stack_name = os.getenv("STACK_NAME", "AwsMinecraftServerStack")
settings = MinecraftServerSettings.from_env()
logger.info("Synthesizing stack %s", stack_name)

MinecraftStack(app, stack_name,
    settings=settings,
    env=cdk.Environment(
        # accountとregion未指定で自動検出
    ),
    description="Self-hosted Minecraft server on AWS ECS with EC2 capacity"
)

app.synth()
