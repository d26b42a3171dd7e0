from typing import Optional

from aws_cdk import (
    aws_autoscaling as autoscaling,
    aws_ecs as ecs,
    aws_ec2 as ec2,
    aws_iam as iam,
    CfnCondition,
    Fn,
    Stack,
    Token
)
from constructs import Construct, IDependable

from .definitions import HOST_DATA_PATH
from .networking import InternetAttachedVpc

CAPACITY_PROVIDER_NAME = "McCapacityProvider"


class ECSStack(Construct):
    """ECSクラスター・Auto Scaling Group・キャパシティプロバイダー・サービスを管理するスタック"""

    def __init__(self, scope: Construct, construct_id: str,
                 vpc: InternetAttachedVpc, security_group: ec2.SecurityGroup,
                 file_system_id: str, mount_targets_available: IDependable,
                 task_definition: ecs.Ec2TaskDefinition, running_condition: CfnCondition,
                 instance_class: ec2.InstanceClass, instance_size: ec2.InstanceSize,
                 key_name: Optional[str] = None, spot_price: Optional[str] = None,
                 container_insights: bool = False, **kwargs) -> None:
        super().__init__(scope, construct_id, **kwargs)

        stack_name = Stack.of(self).stack_name

        # インスタンスロール
        self.instance_role = iam.Role(
            self, "InstanceRole",
            assumed_by=iam.ServicePrincipal("ec2.amazonaws.com"),
            managed_policies=[
                iam.ManagedPolicy.from_aws_managed_policy_name("service-role/AmazonEC2ContainerServiceforEC2Role")
            ]
        )

        # ECSクラスター
        self.cluster = ecs.Cluster(
            self, "EcsCluster",
            vpc=vpc,
            cluster_name=f"{stack_name}-cluster",
            container_insights_v2=ecs.ContainerInsights.ENABLED if container_insights else ecs.ContainerInsights.DISABLED
        )

        # 起動時にEFSをホストへマウント（タスクはホストパスをボリュームとして使う）
        user_data = ec2.UserData.for_linux()
        user_data.add_commands(
            "yum install -y amazon-efs-utils",
            f"mkdir -p {HOST_DATA_PATH}",
            f"mount -t efs {file_system_id}:/ {HOST_DATA_PATH}",
        )

        # 起動テンプレート（スポット価格・キーペアは指定時のみ）
        self.launch_template = ec2.LaunchTemplate(
            self, "LaunchTemplate",
            launch_template_name=f"{stack_name}-lt",
            instance_type=ec2.InstanceType.of(instance_class, instance_size),
            machine_image=ecs.EcsOptimizedImage.amazon_linux2023(),
            key_pair=ec2.KeyPair.from_key_pair_name(self, "KeyPair", key_name) if key_name else None,
            role=self.instance_role,
            security_group=security_group,
            spot_options=ec2.LaunchTemplateSpotOptions(max_price=float(spot_price)) if spot_price else None,
            user_data=user_data
        )

        # Auto Scaling Group（0台または1台）
        self.auto_scaling_group = autoscaling.AutoScalingGroup(
            self, "ASG",
            auto_scaling_group_name=f"{stack_name}-asg",
            launch_template=self.launch_template,
            max_capacity=1,
            min_capacity=0,
            new_instances_protected_from_scale_in=True,
            vpc=vpc,
            vpc_subnets=vpc.subnet_selection()
        )
        self.auto_scaling_group.node.add_dependency(mount_targets_available)

        # Stateパラメータに応じて台数を切り替える
        cfn_asg = self.auto_scaling_group.node.default_child
        cfn_asg.desired_capacity = Token.as_string(
            Fn.condition_if(running_condition.logical_id, "1", "0")
        )

        # キャパシティプロバイダー
        self.capacity_provider = ecs.AsgCapacityProvider(
            self, "McCapacityProvider",
            capacity_provider_name=CAPACITY_PROVIDER_NAME,
            auto_scaling_group=self.auto_scaling_group,
            enable_managed_termination_protection=True,
            minimum_scaling_step_size=1,
            maximum_scaling_step_size=1
        )
        self.cluster.add_asg_capacity_provider(self.capacity_provider)
        self.cluster.add_default_capacity_provider_strategy([
            ecs.CapacityProviderStrategy(
                capacity_provider=self.capacity_provider.capacity_provider_name,
                base=0,
                weight=1
            )
        ])

        # ECSサービス
        self.service = ecs.Ec2Service(
            self, "McService",
            cluster=self.cluster,
            task_definition=task_definition,
            capacity_provider_strategies=[
                ecs.CapacityProviderStrategy(
                    capacity_provider=self.capacity_provider.capacity_provider_name,
                    weight=1,
                    base=0
                )
            ],
            max_healthy_percent=100,
            min_healthy_percent=0,
            desired_count=1
        )

        # STOPPED時はタスク数も0にする（マネージドスケーリングが台数を1へ戻さないように）
        cfn_service = self.service.node.default_child
        cfn_service.desired_count = Token.as_number(
            Fn.condition_if(running_condition.logical_id, 1, 0)
        )
