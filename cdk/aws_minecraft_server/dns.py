from aws_cdk import (
    aws_autoscaling as autoscaling,
    aws_events as events,
    aws_events_targets as targets,
    aws_iam as iam,
    aws_lambda as lambda_,
    aws_route53 as route53,
    Duration,
    Stack
)
from constructs import Construct

# インスタンス起動時にRoute 53のAレコードを新しいパブリックIPへ更新する
SET_DNS_RECORD_HANDLER = """import boto3
import os


def handler(event, context):
    new_instance = boto3.resource('ec2').Instance(event['detail']['EC2InstanceId'])
    boto3.client('route53').change_resource_record_sets(
        HostedZoneId=os.environ['HostedZoneId'],
        ChangeBatch={
            'Comment': 'updating',
            'Changes': [
                {
                    'Action': 'UPSERT',
                    'ResourceRecordSet': {
                        'Name': os.environ['RecordName'],
                        'Type': 'A',
                        'TTL': 60,
                        'ResourceRecords': [
                            {'Value': new_instance.public_ip_address},
                        ],
                    },
                },
            ],
        },
    )
"""


class DnsUpdaterStack(Construct):
    """DNSレコード更新用のLambdaとEventBridgeルールを管理するスタック"""

    def __init__(self, scope: Construct, construct_id: str,
                 hosted_zone_id: str, record_name: str,
                 auto_scaling_group: autoscaling.AutoScalingGroup, **kwargs) -> None:
        super().__init__(scope, construct_id, **kwargs)

        stack_name = Stack.of(self).stack_name

        hosted_zone = route53.HostedZone.from_hosted_zone_id(
            self, "ImportedHostedZone", hosted_zone_id
        )

        # Lambda実行ロール
        self.role = iam.Role(
            self, "SetDNSRecordLambdaRole",
            assumed_by=iam.ServicePrincipal("lambda.amazonaws.com"),
            inline_policies={
                "updateDnsRecord": iam.PolicyDocument(
                    statements=[
                        iam.PolicyStatement(
                            actions=["route53:ChangeResourceRecordSets"],
                            resources=[hosted_zone.hosted_zone_arn]
                        ),
                        iam.PolicyStatement(
                            actions=["ec2:DescribeInstance*"],
                            resources=["*"]
                        )
                    ]
                )
            },
            managed_policies=[
                iam.ManagedPolicy.from_aws_managed_policy_name("service-role/AWSLambdaBasicExecutionRole")
            ]
        )

        # DNS更新Lambda
        self.function = lambda_.Function(
            self, "SetDNSLambda",
            runtime=lambda_.Runtime.PYTHON_3_12,
            description="Sets Route 53 DNS Record for Minecraft",
            handler="index.handler",
            code=lambda_.Code.from_inline(SET_DNS_RECORD_HANDLER),
            role=self.role,
            timeout=Duration.seconds(20),
            memory_size=128,
            function_name=f"{stack_name}-set-dns",
            environment={
                "HostedZoneId": hosted_zone_id,
                "RecordName": record_name
            }
        )

        # インスタンス起動成功イベントでLambdaを実行（ターゲット追加時に呼び出し権限も付与される）
        self.launch_rule = events.Rule(
            self, "LaunchEvent",
            rule_name=f"{stack_name}-instance-launch",
            enabled=True,
            event_pattern=events.EventPattern(
                source=["aws.autoscaling"],
                detail_type=["EC2 Instance Launch Successful"],
                detail={
                    "AutoScalingGroupName": [auto_scaling_group.auto_scaling_group_name]
                }
            ),
            targets=[
                targets.LambdaFunction(self.function)
            ]
        )
