from .client import GroqChatClient

__all__ = ['GroqChatClient']
