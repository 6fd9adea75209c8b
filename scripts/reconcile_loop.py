import hashlib
import os
import subprocess
import sys
import time


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _resolve_config_path() -> str:
    explicit = os.environ.get("CONFIG_PATH")
    if explicit:
        return explicit
    return "/app/config.yaml"


def _rules_signature(rules_file: str) -> str:
    """Fingerprint of the rules file so edits are re-imported."""
    try:
        st = os.stat(rules_file)
    except FileNotFoundError:
        return ""
    raw = f"{rules_file}:{st.st_mtime_ns}:{st.st_size}"
    return hashlib.sha1(raw.encode("utf-8")).hexdigest()


def _run(args: list[str], db_path: str) -> None:
    cmd = ["fintrack", "--db", db_path, "--config", _resolve_config_path()]
    env_file = os.environ.get("ENV_FILE")
    if env_file:
        cmd.extend(["--env-file", env_file])
    cmd.extend(args)

    result = subprocess.run(cmd, check=False)
    if result.returncode != 0:
        raise RuntimeError(f"fintrack {args[0]} failed with exit code {result.returncode}")


def main() -> int:
    db_path = os.environ.get("DB_PATH", "/data/fintrack.db")
    rules_file = os.environ.get("RULES_FILE", "")
    poll_seconds = float(os.environ.get("POLL_SECONDS", "3600"))
    once = _env_bool("RUN_ONCE")

    last_sig = None
    while True:
        try:
            if rules_file:
                sig = _rules_signature(rules_file)
                if sig and sig != last_sig:
                    print("Detected rule changes. Importing...", flush=True)
                    _run(["import-rules", rules_file], db_path)
                    last_sig = sig
            _run(["generate"], db_path)
        except Exception as exc:
            print(f"Reconcile error: {exc}", file=sys.stderr)
            if once:
                return 1
        if once:
            return 0
        time.sleep(poll_seconds)


if __name__ == "__main__":
    raise SystemExit(main())
