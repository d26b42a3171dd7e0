from .config import MinecraftServerSettings
from .minecraft_stack import MinecraftStack

__all__ = ["MinecraftServerSettings", "MinecraftStack"]
