from aws_cdk import (
    Stack,
    Tags,
    CfnCondition,
    CfnOutput,
    CfnParameter,
    Fn
)
from constructs import Construct
from .config import MinecraftServerSettings
from .networking import NetworkingStack
from .storage import StorageStack
from .definitions import MinecraftDefinitions
from .ecs import ECSStack
from .dns import DnsUpdaterStack


class MinecraftStack(Stack):
    """Minecraftサーバー用のメインスタック"""

    def __init__(self, scope: Construct, construct_id: str,
                 settings: MinecraftServerSettings, **kwargs) -> None:
        super().__init__(scope, construct_id, **kwargs)

        self.settings = settings

        # リソース検出用の共通タグ
        self.common_tags = {
            "Project": settings.project_name,
            "ManagedBy": "cdk",
            "StackName": construct_id
        }

        # サーバーの起動状態（RUNNINGで1台、STOPPEDで0台）
        self.state = CfnParameter(
            self, "State",
            allowed_values=["RUNNING", "STOPPED"],
            description="The desired state of the server.",
            default="STOPPED"
        )
        self.is_running = CfnCondition(
            self, "IsRunning",
            expression=Fn.condition_equals(self.state.value_as_string, "RUNNING")
        )

        # リソースの作成
        self._create_networking()
        self._create_storage()
        self._create_definitions()
        self._create_ecs()
        self._create_dns()

        # スタック全体にタグを適用
        self._apply_common_tags()

        # 出力値の作成
        self._create_outputs()

    def _create_networking(self):
        """ネットワークリソースの作成"""
        self.networking = NetworkingStack(
            self, "Networking",
            vpc_cidr=self.settings.vpc_cidr,
            ssh_cidr=self.settings.ssh_cidr
        )

    def _create_storage(self):
        """ストレージリソースの作成"""
        self.storage = StorageStack(
            self, "Storage",
            vpc=self.networking.vpc,
            security_group=self.networking.efs_sg
        )

    def _create_definitions(self):
        """タスク定義・コンテナ定義の作成"""
        self.definitions = MinecraftDefinitions(
            self, "Mc",
            stream_prefix=self.settings.stream_prefix,
            mc_image_tag=self.settings.mc_image_tag,
            log_retention=self.settings.log_retention,
            mc_environment=self.settings.mc_environment
        )

    def _create_ecs(self):
        """ECSリソースの作成"""
        self.ecs = ECSStack(
            self, "ECS",
            vpc=self.networking.vpc,
            security_group=self.networking.ec2_sg,
            file_system_id=self.storage.file_system.file_system_id,
            mount_targets_available=self.storage.mount_targets_available,
            task_definition=self.definitions.task,
            running_condition=self.is_running,
            instance_class=self.settings.instance_class,
            instance_size=self.settings.instance_size,
            key_name=self.settings.key_name,
            spot_price=self.settings.spot_price,
            container_insights=self.settings.container_insights
        )

    def _create_dns(self):
        """DNS更新リソースの作成"""
        self.dns = DnsUpdaterStack(
            self, "Dns",
            hosted_zone_id=self.settings.hosted_zone_id,
            record_name=self.settings.record_name,
            auto_scaling_group=self.ecs.auto_scaling_group
        )

    def _apply_common_tags(self):
        """共通タグの適用"""
        for key, value in self.common_tags.items():
            Tags.of(self).add(key, value)

    def _create_outputs(self):
        """出力値の作成"""
        CfnOutput(
            self, "VPCId",
            value=self.networking.vpc.vpc_id,
            description="VPC ID"
        )

        CfnOutput(
            self, "EFSFileSystemId",
            value=self.storage.file_system.file_system_id,
            description="EFS File System ID"
        )

        CfnOutput(
            self, "ECSClusterName",
            value=self.ecs.cluster.cluster_name,
            description="ECS Cluster Name"
        )

        CfnOutput(
            self, "AutoScalingGroupName",
            value=self.ecs.auto_scaling_group.auto_scaling_group_name,
            description="Auto Scaling Group Name"
        )

        CfnOutput(
            self, "RecordName",
            value=self.settings.record_name,
            description="Minecraft server DNS record"
        )
