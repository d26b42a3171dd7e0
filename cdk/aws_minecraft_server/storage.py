from aws_cdk import (
    aws_efs as efs,
    aws_ec2 as ec2,
    RemovalPolicy
)
from constructs import Construct

from .networking import InternetAttachedVpc


class StorageStack(Construct):
    """ワールドデータ永続化用のEFSを管理するスタック"""

    def __init__(self, scope: Construct, construct_id: str,
                 vpc: InternetAttachedVpc, security_group: ec2.SecurityGroup, **kwargs) -> None:
        super().__init__(scope, construct_id, **kwargs)

        # EFSファイルシステム（スタック削除後もワールドデータは残す）
        self.file_system = efs.FileSystem(
            self, "FileSystem",
            vpc=vpc,
            vpc_subnets=vpc.subnet_selection(),
            security_group=security_group,
            encrypted=True,
            performance_mode=efs.PerformanceMode.GENERAL_PURPOSE,
            throughput_mode=efs.ThroughputMode.BURSTING,
            removal_policy=RemovalPolicy.RETAIN
        )

    @property
    def mount_targets_available(self):
        """マウントターゲット作成完了の依存関係"""
        return self.file_system.mount_targets_available
