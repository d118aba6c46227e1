"""
SECRETS REDACTION
=================
Utility to mask secrets in logs.
"""

# FLOW:
# - redact_args() masks KEY=value arguments before logging.
# WHY:
# - Prevents leaking credentials in logs.
# HOW:
# - Replaces the value part with ***.

from __future__ import annotations

import re

from Security.security_config import feature_enabled


# KEY=value pairs passed as CLI arguments; only the variable name survives
_ENV_ASSIGNMENT = re.compile(r"^([A-Za-z_][A-Za-z0-9_]*=).+$")


def redact_args(args: list[str]) -> list[str]:
    if not feature_enabled("secrets-redaction", True):
        return list(args)
    return [_ENV_ASSIGNMENT.sub(r"\1***", arg) for arg in args]
