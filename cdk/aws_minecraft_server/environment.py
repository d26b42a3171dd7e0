"""
Minecraftコンテナ（itzg/minecraft-server）の環境変数ビルダー
型付きの設定値をECSタスク定義に渡す文字列の環境変数へ変換する
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Sequence

from aws_cdk import TimeZone


class MinecraftType(Enum):
    """サーバー種別"""
    SPIGOT = "SPIGOT"


class MinecraftDifficulty(Enum):
    """難易度"""
    PEACEFUL = "peaceful"
    HARD = "hard"


class MinecraftGamemode(Enum):
    """ゲームモード"""
    SURVIVAL = "SURVIVAL"


class MinecraftLevelType(Enum):
    """ワールドタイプ"""
    NORMAL = "minecraft:normal"
    SUPERFLAT = "minecraft:flat"


@dataclass(frozen=True)
class MinecraftContainerEnvironmentProps:
    """コンテナ環境変数の設定（未指定のフィールドは出力しない）"""
    type: Optional[MinecraftType] = None
    ops: Optional[Sequence[str]] = None
    difficulty: Optional[MinecraftDifficulty] = None
    whitelist: Optional[Sequence[str]] = None
    version: Optional[str] = None
    memory: Optional[int] = None
    seed: Optional[str] = None
    max_players: Optional[int] = None
    view_distance: Optional[int] = None
    mode: Optional[MinecraftGamemode] = None
    level_type: Optional[MinecraftLevelType] = None
    enable_rolling_logs: Optional[bool] = None
    tz: Optional[TimeZone] = None


def _to_int_string(value) -> str:
    return str(int(value))


def convert_environment(mc_environment: Optional[MinecraftContainerEnvironmentProps]) -> Dict[str, str]:
    """設定値を環境変数のdictに変換する

    Noneのフィールドはキーごと省略する。空のリストは指定ありとして空文字を出力する。
    enable_rolling_logsはFalseの場合も省略される（True のときのみ "TRUE"）。
    値の妥当性チェックは行わない。
    """
    environment: Dict[str, str] = {}
    if mc_environment is None:
        return environment

    if mc_environment.type is not None:
        environment["TYPE"] = mc_environment.type.value
    if mc_environment.ops is not None:
        environment["OPS"] = ",".join(mc_environment.ops)
    if mc_environment.difficulty is not None:
        environment["DIFFICULTY"] = mc_environment.difficulty.value
    if mc_environment.whitelist is not None:
        environment["WHITELIST"] = ",".join(mc_environment.whitelist)
    if mc_environment.version is not None:
        environment["VERSION"] = mc_environment.version
    if mc_environment.memory is not None:
        environment["MEMORY"] = _to_int_string(mc_environment.memory)
    if mc_environment.seed is not None:
        environment["SEED"] = mc_environment.seed
    if mc_environment.max_players is not None:
        environment["MAX_PLAYERS"] = _to_int_string(mc_environment.max_players)
    if mc_environment.view_distance is not None:
        environment["VIEW_DISTANCE"] = _to_int_string(mc_environment.view_distance)
    if mc_environment.mode is not None:
        environment["MODE"] = mc_environment.mode.value
    if mc_environment.level_type is not None:
        environment["LEVEL_TYPE"] = mc_environment.level_type.value
    # Falseは未指定と同じ扱い（明示的な無効化は表現できない）
    if mc_environment.enable_rolling_logs:
        environment["ENABLE_ROLLING_LOGS"] = str(mc_environment.enable_rolling_logs).upper()
    if mc_environment.tz is not None:
        environment["TZ"] = mc_environment.tz.timezone_name

    return environment
