"""
Default settings for tfmatrix.

These are the default values used when no repository configuration exists.
"""

DEFAULT_SETTINGS = {
    "version": "1.0.0",

    # External tools
    "terraform_binary": "terraform",
    "git_binary": "git",
    "command_timeout": 300,  # seconds, per subprocess

    # Graph generation
    "max_workers": 8,
    "inspector": "terraform",  # "terraform" or "hcl"
    "marker_file": ".terraform-version",
    "default_ignore_patterns": [".git", ".terraform"],

    # File names, relative to the workspace root
    "deps_file": ".tfdeps.json",
    "changes_file": ".tfchanges.json",
    "ignore_file": ".tfdepsignore",
    "permission_file": ".terraform-permissions.json",

    # Chat command surface
    "command": {
        "trigger": "$terraform",
    },
}
