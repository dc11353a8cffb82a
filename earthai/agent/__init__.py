from .agent import create_agent

__all__ = ["create_agent"]
