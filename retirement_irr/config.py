from __future__ import annotations

from typing import Any, Dict
import os
import io
import yaml

from .notify import MailSettings


def _parse_yaml_fallback(text: str) -> Dict[str, Any]:
    """
    Super-tolerant parser for key: value lines (only for emergencies).
    Booleans and numbers are coerced when obvious.
    """
    data: Dict[str, Any] = {}
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        if ":" not in line:
            continue
        k, v = line.split(":", 1)
        k = k.strip()
        v = v.strip().strip('"').strip("'")
        if not v:
            continue
        if v.lower() in ("true", "false"):
            data[k] = v.lower() == "true"
            continue
        try:
            data[k] = float(v) if "." in v else int(v)
        except ValueError:
            data[k] = v
    return data


def _flatten_grouped(cfg: Dict[str, Any]) -> Dict[str, Any]:
    """
    Flatten shallow groups like {'mail': {...}, 'output': {...}} into one level.
    Prefers top-level keys if collisions occur.
    """
    flat: Dict[str, Any] = dict(cfg)
    for k, v in list(cfg.items()):
        if isinstance(v, dict):
            flat.pop(k)
            for sk, sv in v.items():
                flat.setdefault(sk, sv)
    return flat


def load_run_config(source: str | os.PathLike | io.StringIO) -> Dict[str, Any]:
    """
    Load YAML from a path or text stream. If YAML fails, use a tolerant fallback.
    Returns a flat dict.
    """
    text: str
    if hasattr(source, "read"):
        text = str(source.read())
    else:
        p = os.fspath(source)
        with open(p, "r", encoding="utf-8") as f:
            text = f.read()

    try:
        cfg = yaml.safe_load(text) or {}
        if not isinstance(cfg, dict):
            cfg = {}
    except yaml.YAMLError:
        cfg = _parse_yaml_fallback(text)

    return _flatten_grouped(cfg)


def _env_or(name: str, default: Any) -> Any:
    v = os.environ.get(name)
    return v if v not in (None, "") else default


def mail_settings(cfg: Dict[str, Any] | None = None) -> MailSettings:
    """
    Mail settings from the run config, overridden by MAIL_* environment
    variables. Passwords are only read from the environment or config;
    never logged.
    """
    cfg = cfg or {}
    use_tls = _env_or("MAIL_USE_TLS", cfg.get("use_tls", True))
    if isinstance(use_tls, str):
        use_tls = use_tls.strip().lower() not in ("0", "false", "no", "off")
    return MailSettings(
        server=_env_or("MAIL_SERVER", cfg.get("server")),
        port=int(_env_or("MAIL_PORT", cfg.get("port", 587))),
        use_tls=bool(use_tls),
        username=_env_or("MAIL_USERNAME", cfg.get("username")),
        password=_env_or("MAIL_PASSWORD", cfg.get("password")),
        sender=_env_or("MAIL_SENDER", cfg.get("sender")),
        outbox_dir=_env_or("MAIL_OUTBOX_DIR", cfg.get("outbox_dir")),
    )
