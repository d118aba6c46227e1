"""
Rename legacy Vite-prefixed variables in the env file.
Usage: python -m booking_platform.fix_env [env_file]

Prints FIXED_ENV_VARS, NO_FIX_NEEDED or FILE_NOT_FOUND.
"""
import sys
from pathlib import Path

DEFAULT_ENV_FILE = ".env.local"

RENAMES = {
    "VITE_SUPABASE_URL": "NEXT_PUBLIC_SUPABASE_URL",
    "VITE_SUPABASE_ANON_KEY": "NEXT_PUBLIC_SUPABASE_ANON_KEY",
}


def fix_env_file(env_file: str) -> str:
    path = Path(env_file)
    if not path.exists():
        return "FILE_NOT_FOUND"

    content = path.read_text(encoding="utf-8")
    fixed = False
    for old_name, new_name in RENAMES.items():
        if old_name in content:
            content = content.replace(old_name, new_name)
            fixed = True

    if not fixed:
        return "NO_FIX_NEEDED"
    path.write_text(content, encoding="utf-8")
    return "FIXED_ENV_VARS"


def main(argv=None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    print(fix_env_file(argv[0] if argv else DEFAULT_ENV_FILE))
    return 0


if __name__ == "__main__":
    sys.exit(main())
