"""
Deploy with every key/value from the env file injected as
--env/--build-env flags.
Usage: python -m booking_platform.deploy_with_env [env_file]

Exits with the deployment process's exit code.
"""
import os
import shutil
import subprocess
import sys
from typing import Mapping

import dotenv

from Security.secrets_redaction import redact_args

DEFAULT_ENV_FILE = ".env.local"
DEPLOY_COMMAND = ["vercel", "deploy", "--prod", "--yes", "--force"]


def read_env_file(env_file: str) -> dict:
    if not os.path.exists(env_file):
        return {}
    return dict(dotenv.dotenv_values(env_file))


def build_deploy_args(env_values: Mapping[str, str | None]) -> list[str]:
    args = list(DEPLOY_COMMAND)
    for key, value in env_values.items():
        key = (key or "").strip()
        if key and value:
            args.extend(["--env", f"{key}={value}", "--build-env", f"{key}={value}"])
    return args


def run_deploy(args: list[str], runner=subprocess.run) -> int:
    print("Starting deployment (FORCE) with injected environment variables...")
    print("Command:", " ".join(redact_args(args)))
    try:
        completed = runner([shutil.which(args[0]) or args[0], *args[1:]])
    except OSError as exc:
        print(f"Failed to start subprocess. {exc}", file=sys.stderr)
        return 1
    print(f"Child process exited with code {completed.returncode}")
    return completed.returncode


def main(argv=None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    env_file = argv[0] if argv else DEFAULT_ENV_FILE
    return run_deploy(build_deploy_args(read_env_file(env_file)))


if __name__ == "__main__":
    sys.exit(main())
