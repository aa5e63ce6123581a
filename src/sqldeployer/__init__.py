"""
SqlDeployer - Deploy .dacpac packages and SQL scripts with sqlpackage and sqlcmd
"""

__version__ = "0.1.0"

from .core import ActionDispatcher
from .errors import DeployerError

__all__ = ["ActionDispatcher", "DeployerError"]
