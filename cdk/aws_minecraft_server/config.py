"""
デプロイ設定の読み込み
.envファイル（app.pyでload_dotenv済み）と環境変数から設定値を組み立てる
"""

import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Mapping, Optional, Type

from aws_cdk import TimeZone
from aws_cdk import aws_ec2 as ec2
from aws_cdk import aws_logs as logs

from .environment import (
    MinecraftContainerEnvironmentProps,
    MinecraftDifficulty,
    MinecraftGamemode,
    MinecraftLevelType,
    MinecraftType,
)

logger = logging.getLogger(__name__)

_TRUE_VALUES = ("true", "1", "yes", "on")
_FALSE_VALUES = ("false", "0", "no", "off")


@dataclass
class MinecraftServerSettings:
    """スタック全体の設定値"""
    hosted_zone_id: str
    record_name: str
    project_name: str = "aws-minecraft-server"
    instance_class: ec2.InstanceClass = ec2.InstanceClass.T3
    instance_size: ec2.InstanceSize = ec2.InstanceSize.MEDIUM
    key_name: Optional[str] = None
    spot_price: Optional[str] = "0.05"
    stream_prefix: str = "/ecs/minecraft"
    container_insights: bool = False
    log_retention: logs.RetentionDays = logs.RetentionDays.ONE_WEEK
    mc_image_tag: str = "latest"
    vpc_cidr: str = "10.200.0.0/26"
    # "auto"の場合は実行環境のグローバルIPに制限する
    ssh_cidr: str = "0.0.0.0/0"
    mc_environment: MinecraftContainerEnvironmentProps = field(
        default_factory=MinecraftContainerEnvironmentProps
    )

    @classmethod
    def from_env(cls, environ: Mapping[str, str] = None) -> "MinecraftServerSettings":
        """環境変数から設定を読み込む"""
        environ = os.environ if environ is None else environ

        settings = cls(
            hosted_zone_id=_require(environ, "HOSTED_ZONE_ID"),
            record_name=_require(environ, "RECORD_NAME"),
            project_name=environ.get("PROJECT_NAME", "aws-minecraft-server"),
            instance_class=_parse_member(ec2.InstanceClass, "INSTANCE_CLASS", environ.get("INSTANCE_CLASS", "T3")),
            instance_size=_parse_member(ec2.InstanceSize, "INSTANCE_SIZE", environ.get("INSTANCE_SIZE", "MEDIUM")),
            key_name=environ.get("KEY_NAME") or None,
            # 空文字はオンデマンドインスタンス
            spot_price=environ.get("SPOT_PRICE", "0.05") or None,
            stream_prefix=environ.get("STREAM_PREFIX", "/ecs/minecraft"),
            container_insights=_parse_bool("CONTAINER_INSIGHTS", environ.get("CONTAINER_INSIGHTS", "false")),
            log_retention=_parse_member(logs.RetentionDays, "LOG_RETENTION", environ.get("LOG_RETENTION", "ONE_WEEK")),
            mc_image_tag=environ.get("MC_IMAGE_TAG", "latest"),
            vpc_cidr=environ.get("VPC_CIDR", "10.200.0.0/26"),
            ssh_cidr=environ.get("SSH_CIDR", "0.0.0.0/0"),
            mc_environment=load_container_environment(environ),
        )
        logger.info(
            "Settings loaded: project=%s, record=%s, instance=%s.%s, spot_price=%s",
            settings.project_name, settings.record_name,
            settings.instance_class.name, settings.instance_size.name, settings.spot_price,
        )
        return settings


def load_container_environment(environ: Mapping[str, str]) -> MinecraftContainerEnvironmentProps:
    """MC_*環境変数からコンテナ環境変数の設定を組み立てる

    未設定・空文字の変数はNone。MC_OPSとMC_WHITELISTのみ空文字を空リストとして扱う。
    """
    return MinecraftContainerEnvironmentProps(
        type=_optional(environ, "MC_TYPE", lambda v: _parse_enum(MinecraftType, "MC_TYPE", v)),
        ops=_optional(environ, "MC_OPS", _split_list, allow_blank=True),
        difficulty=_optional(environ, "MC_DIFFICULTY", lambda v: _parse_enum(MinecraftDifficulty, "MC_DIFFICULTY", v)),
        whitelist=_optional(environ, "MC_WHITELIST", _split_list, allow_blank=True),
        version=_optional(environ, "MC_VERSION", str.strip),
        memory=_optional(environ, "MC_MEMORY", lambda v: _parse_int("MC_MEMORY", v)),
        seed=_optional(environ, "MC_SEED", str.strip),
        max_players=_optional(environ, "MC_MAX_PLAYERS", lambda v: _parse_int("MC_MAX_PLAYERS", v)),
        view_distance=_optional(environ, "MC_VIEW_DISTANCE", lambda v: _parse_int("MC_VIEW_DISTANCE", v)),
        mode=_optional(environ, "MC_MODE", lambda v: _parse_enum(MinecraftGamemode, "MC_MODE", v)),
        level_type=_optional(environ, "MC_LEVEL_TYPE", lambda v: _parse_enum(MinecraftLevelType, "MC_LEVEL_TYPE", v)),
        enable_rolling_logs=_optional(environ, "MC_ENABLE_ROLLING_LOGS", lambda v: _parse_bool("MC_ENABLE_ROLLING_LOGS", v)),
        tz=_optional(environ, "MC_TZ", TimeZone.of),
    )


def _require(environ: Mapping[str, str], key: str) -> str:
    value = environ.get(key)
    if not value:
        raise ValueError(f"{key} environment variable is required")
    return value


def _optional(environ: Mapping[str, str], key: str, parse, allow_blank: bool = False):
    value = environ.get(key)
    if value is None:
        return None
    if not value.strip() and not allow_blank:
        return None
    return parse(value)


def _split_list(value: str) -> List[str]:
    # 空文字は空リスト（指定あり）
    return [item.strip() for item in value.split(",") if item.strip()]


def _parse_int(key: str, value: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{key} must be an integer: {value!r}") from None


def _parse_bool(key: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"{key} must be a boolean: {value!r}")


def _parse_enum(enum_type: Type[Enum], key: str, value: str):
    """メンバー名またはシリアライズ値（大文字小文字を区別しない）で列挙値を解決する"""
    normalized = value.strip().lower()
    for member in enum_type:
        if member.name.lower() == normalized or str(member.value).lower() == normalized:
            return member
    allowed = ", ".join(member.name for member in enum_type)
    raise ValueError(f"{key} must be one of {allowed}: {value!r}")


def _parse_member(enum_type, key: str, value: str):
    """CDKの列挙型をメンバー名で解決する（例: T3, MEDIUM, ONE_WEEK）"""
    try:
        return enum_type[value.strip().upper()]
    except KeyError:
        raise ValueError(f"{key} is not a valid {enum_type.__name__}: {value!r}") from None
