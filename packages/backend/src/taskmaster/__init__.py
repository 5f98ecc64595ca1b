"""TaskMaster — task and team management backend.

REST API behind the TaskMaster single-page app: accounts with bearer-token
auth, owner-scoped tasks, and a flat team directory.
"""

__version__ = "0.1.0"
