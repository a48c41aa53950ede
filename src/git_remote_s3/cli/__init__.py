# The 'main' function is not imported here: it would shadow the 'main'
# module and break mock.patch("git_remote_s3.cli.main.Remote").
# For the console script, use git_remote_s3.cli.main:main directly.
from .main import RemoteHelperCLI

__all__ = ["RemoteHelperCLI"]
