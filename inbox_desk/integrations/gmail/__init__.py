from .auth_manager import GmailAuthenticationManager
from .client import GmailMailSource

__all__ = ['GmailAuthenticationManager', 'GmailMailSource']
