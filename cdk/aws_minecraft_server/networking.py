import logging
import requests
from aws_cdk import (
    aws_ec2 as ec2,
    Fn,
    Stack
)
from constructs import Construct

logger = logging.getLogger(__name__)


class InternetAttachedVpc(ec2.Vpc):
    """インターネットゲートウェイ・ルートテーブル・2つのサブネットを自前で構築するVPC"""

    def __init__(self, scope: Construct, construct_id: str, vpc_cidr: str, **kwargs) -> None:
        # サブネットはL2のレイアウトを使わず下で個別に作成する
        super().__init__(
            scope, construct_id,
            ip_addresses=ec2.IpAddresses.cidr(vpc_cidr),
            max_azs=2,
            subnet_configuration=[],
            enable_dns_hostnames=True,
            enable_dns_support=True,
            **kwargs
        )

        self.subnets: list[ec2.ISubnet] = []

        # インターネットゲートウェイ
        gateway = ec2.CfnInternetGateway(self, "InternetGateway")
        attachment = ec2.CfnVPCGatewayAttachment(
            self, "InternetGatewayAttachment",
            internet_gateway_id=gateway.attr_internet_gateway_id,
            vpc_id=self.vpc_id
        )

        # 共有ルートテーブル（デフォルトルートはゲートウェイへ）
        route_table = ec2.CfnRouteTable(self, "RouteTable", vpc_id=self.vpc_id)
        default_route = ec2.CfnRoute(
            self, "DefaultRoute",
            route_table_id=route_table.attr_route_table_id,
            destination_cidr_block="0.0.0.0/0",
            gateway_id=gateway.attr_internet_gateway_id
        )
        default_route.node.add_dependency(attachment)

        # /26を/28に4分割し、先頭2つをAZごとに割り当てる
        for i, suffix in enumerate(["A", "B"]):
            availability_zone = self.availability_zones[i]
            subnet = ec2.CfnSubnet(
                self, f"Subnet{suffix}",
                vpc_id=self.vpc_id,
                availability_zone=availability_zone,
                cidr_block=Fn.select(i, Fn.cidr(vpc_cidr, 4, "4")),
                map_public_ip_on_launch=True
            )
            ec2.CfnSubnetRouteTableAssociation(
                self, f"Subnet{suffix}Route",
                route_table_id=route_table.attr_route_table_id,
                subnet_id=subnet.attr_subnet_id
            )
            self.subnets.append(ec2.Subnet.from_subnet_attributes(
                self, f"Subnet{suffix}Ref",
                subnet_id=subnet.attr_subnet_id,
                availability_zone=availability_zone,
                route_table_id=route_table.attr_route_table_id
            ))

    def subnet_selection(self) -> ec2.SubnetSelection:
        """自前サブネットを指定するSubnetSelection"""
        return ec2.SubnetSelection(subnets=self.subnets)


class NetworkingStack(Construct):
    """ネットワークリソースを管理するスタック"""

    def __init__(self, scope: Construct, construct_id: str,
                 vpc_cidr: str, ssh_cidr: str = "0.0.0.0/0", **kwargs) -> None:
        super().__init__(scope, construct_id, **kwargs)

        stack_name = Stack.of(self).stack_name
        self.ssh_cidr = self._resolve_ssh_cidr(ssh_cidr)

        # VPC
        self.vpc = InternetAttachedVpc(self, "Vpc", vpc_cidr=vpc_cidr)

        # セキュリティグループ
        self.ec2_sg = ec2.SecurityGroup(
            self, "Ec2Sg",
            vpc=self.vpc,
            security_group_name=f"{stack_name}-ec2sg",
            description=f"{stack_name}-ec2",
            allow_all_outbound=True
        )

        self.efs_sg = ec2.SecurityGroup(
            self, "EfsSg",
            vpc=self.vpc,
            security_group_name=f"{stack_name}-efs",
            description=f"{stack_name}-efs",
            allow_all_outbound=True
        )

        self._create_security_group_rules()

    def _resolve_ssh_cidr(self, ssh_cidr: str) -> str:
        """SSH許可CIDRの決定（"auto"の場合は現在のIPアドレスを取得）"""
        if ssh_cidr != "auto":
            return ssh_cidr

        try:
            response = requests.get("https://ipv4.icanhazip.com", timeout=10)
            response.raise_for_status()
            my_ip = response.text.strip() + "/32"
            logger.info("SSH access restricted to %s", my_ip)
            return my_ip
        except requests.RequestException as e:
            logger.warning("Could not fetch current IP address, allowing SSH from anywhere: %s", e)
            return "0.0.0.0/0"

    def _create_security_group_rules(self):
        """セキュリティグループルールの作成"""
        self.ec2_sg.add_ingress_rule(
            ec2.Peer.ipv4(self.ssh_cidr),
            ec2.Port.tcp(22),
            "SSH rule"
        )
        self.ec2_sg.add_ingress_rule(
            ec2.Peer.any_ipv4(),
            ec2.Port.tcp(25565),
            "Minecraft"
        )

        # EFS用ルール - EC2インスタンスからのNFSアクセスのみ許可
        self.efs_sg.add_ingress_rule(
            ec2.Peer.security_group_id(self.ec2_sg.security_group_id),
            ec2.Port.tcp(2049),
            "EFS NFS from EC2 instances"
        )
