"""Actionable error catalog for drdump."""

from typing import Dict

_ERROR_MESSAGES: Dict[str, Dict[str, str]] = {
    "missing_databases": {
        "what": "Unable to find some databases: {names}",
        "next": "Check the database names or the grants of user `{username}` on {host}.",
    },
    "connect_failed": {
        "what": "Unable to connect to MySQL at {host}:{port}: {reason}",
        "next": "Verify the host, port, security groups and the stored password.",
    },
    "query_failed": {
        "what": "Unable to list databases on {host}:{port}: {reason}",
        "next": "Make sure the user can run `SHOW DATABASES`.",
    },
    "missing_role": {
        "what": "Expected role is missing: {prefix}",
        "next": "Deploy the role stack in the source account before preparing the environment.",
    },
    "missing_parameter": {
        "what": "Unable to find parameter at {name}",
        "next": "Deploy the common bucket stack, which registers `{name}` in Parameter Store.",
    },
    "tool_not_found": {
        "what": "Required command not found: {tool}",
        "next": "Install `{tool}` and make sure it is on PATH.",
    },
    "stack_failed": {
        "what": "Stack [{stack}] did not reach a stable state: {reason}",
        "next": "Inspect the CloudFormation events of [{stack}] in the source account.",
    },
}


def actionable_error(code: str, **kwargs: str) -> str:
    if code not in _ERROR_MESSAGES:
        raise KeyError(f"Unknown error catalog key: {code}")

    template = _ERROR_MESSAGES[code]
    what = template["what"].format(**kwargs)
    next_step = template["next"].format(**kwargs)
    return f"{what} Suggested action: {next_step}"
