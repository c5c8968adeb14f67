"""OpenCode Box - a secure Docker environment for AI-assisted development.

Launches one isolated OpenCode container bound to the host git repository,
with the workspace cloned inside the container or mounted from the host.
"""

__version__ = "1.4.1"
