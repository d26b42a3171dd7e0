from typing import Optional

from aws_cdk import (
    aws_ecs as ecs,
    aws_logs as logs,
    RemovalPolicy
)
from constructs import Construct

from .environment import MinecraftContainerEnvironmentProps, convert_environment

MINECRAFT_IMAGE = "itzg/minecraft-server"
MINECRAFT_PORT = 25565
HOST_DATA_PATH = "/opt/minecraft"


class MinecraftDefinitions(Construct):
    """Minecraftサーバーのタスク定義とコンテナ定義"""

    def __init__(self, scope: Construct, construct_id: str,
                 stream_prefix: str, mc_image_tag: str = "latest",
                 log_retention: logs.RetentionDays = logs.RetentionDays.ONE_WEEK,
                 log_group: Optional[logs.ILogGroup] = None,
                 mc_environment: Optional[MinecraftContainerEnvironmentProps] = None,
                 **kwargs) -> None:
        super().__init__(scope, construct_id, **kwargs)

        # ロググループ（指定がなければ保持期間付きで作成）
        self.log_group = log_group or logs.LogGroup(
            self, "McLogs",
            retention=log_retention,
            removal_policy=RemovalPolicy.DESTROY
        )

        # タスク定義（EC2起動タイプ、ホストのEFSマウント先をボリュームとして使用）
        self.task = ecs.Ec2TaskDefinition(
            self, "McTaskDef",
            network_mode=ecs.NetworkMode.BRIDGE,
            volumes=[
                ecs.Volume(
                    name="minecraft",
                    host=ecs.Host(source_path=HOST_DATA_PATH)
                )
            ]
        )

        # EULA同意は必須、それ以外は設定値から生成
        environment = {"EULA": "TRUE"}
        environment.update(convert_environment(mc_environment))

        # コンテナ定義
        self.container = self.task.add_container(
            "McContainerDef",
            image=ecs.ContainerImage.from_registry(f"{MINECRAFT_IMAGE}:{mc_image_tag}"),
            memory_reservation_mib=1024,
            container_name="minecraft",
            logging=ecs.LogDrivers.aws_logs(
                stream_prefix=stream_prefix,
                log_group=self.log_group
            ),
            environment=environment,
            port_mappings=[
                ecs.PortMapping(
                    container_port=MINECRAFT_PORT,
                    host_port=MINECRAFT_PORT,
                    protocol=ecs.Protocol.TCP
                )
            ]
        )

        # ワールドデータのマウント
        self.container.add_mount_points(
            ecs.MountPoint(
                source_volume="minecraft",
                container_path="/data",
                read_only=False
            )
        )
