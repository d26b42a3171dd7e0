import aws_cdk as core
import aws_cdk.assertions as assertions
import pytest
import requests
from aws_cdk.assertions import Match

from aws_minecraft_server import networking
from aws_minecraft_server.networking import NetworkingStack


class FakeResponse:
    def __init__(self, text):
        self.text = text

    def raise_for_status(self):
        pass


def build(ssh_cidr):
    app = core.App()
    stack = core.Stack(app, "NetStack")
    networking_stack = NetworkingStack(stack, "Networking", vpc_cidr="10.50.0.0/26", ssh_cidr=ssh_cidr)
    return networking_stack, assertions.Template.from_stack(stack)


def test_vpc_exposes_two_subnets():
    networking_stack, template = build("0.0.0.0/0")

    assert len(networking_stack.vpc.subnets) == 2
    template.resource_count_is("AWS::EC2::Subnet", 2)
    template.has_resource_properties("AWS::EC2::Subnet", {
        "CidrBlock": {"Fn::Select": [0, {"Fn::Cidr": ["10.50.0.0/26", 4, "4"]}]},
    })
    template.has_resource_properties("AWS::EC2::Subnet", {
        "CidrBlock": {"Fn::Select": [1, {"Fn::Cidr": ["10.50.0.0/26", 4, "4"]}]},
    })


def test_explicit_ssh_cidr(monkeypatch):
    def fail(*args, **kwargs):
        raise AssertionError("IP lookup should not run")

    monkeypatch.setattr(networking.requests, "get", fail)
    networking_stack, template = build("198.51.100.0/24")

    assert networking_stack.ssh_cidr == "198.51.100.0/24"
    template.has_resource_properties("AWS::EC2::SecurityGroup", {
        "SecurityGroupIngress": Match.array_with([
            Match.object_like({"CidrIp": "198.51.100.0/24", "FromPort": 22}),
        ]),
    })


def test_auto_ssh_cidr_uses_current_ip(monkeypatch):
    monkeypatch.setattr(networking.requests, "get", lambda *args, **kwargs: FakeResponse("203.0.113.5\n"))
    networking_stack, _ = build("auto")

    assert networking_stack.ssh_cidr == "203.0.113.5/32"


def test_auto_ssh_cidr_falls_back_when_lookup_fails(monkeypatch):
    def fail(*args, **kwargs):
        raise requests.ConnectionError("offline")

    monkeypatch.setattr(networking.requests, "get", fail)
    networking_stack, _ = build("auto")

    assert networking_stack.ssh_cidr == "0.0.0.0/0"


@pytest.mark.parametrize("ssh_cidr", ["0.0.0.0/0", "198.51.100.0/24"])
def test_minecraft_port_open_to_anyone(ssh_cidr):
    _, template = build(ssh_cidr)

    template.has_resource_properties("AWS::EC2::SecurityGroup", {
        "SecurityGroupIngress": Match.array_with([
            Match.object_like({"CidrIp": "0.0.0.0/0", "FromPort": 25565, "ToPort": 25565}),
        ]),
    })
