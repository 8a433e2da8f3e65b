#!/usr/bin/env python3
"""
System RBAC Manager.

Converges the system ServiceAccount, ClusterRole and ClusterRoleBinding.
Safe to run on every process start.
"""

import sys
from system_rbac.libs.main_app import main


if __name__ == "__main__":
    sys.exit(main())
