"""
tfmatrix - decides which Terraform roots of a monorepo to plan or apply.
"""

__version__ = "1.0.0"
