import os
from typing import Any, Dict, Mapping, Optional

import yaml

from report_ingest.commons.types import Settings

DEFAULT_SETTINGS = "report_ingest/configs/settings.yaml"

# variable de entorno -> (sección, campo)
ENV_OVERRIDES = {
    "DB_URL": ("database", "url"),
    "DB_HOST": ("database", "host"),
    "DB_USER": ("database", "user"),
    "DB_PASS": ("database", "password"),
    "DB_NAME": ("database", "name"),
    "DB_PORT": ("database", "port"),
    "DB_SSLMODE": ("database", "sslmode"),
    "AZURE_OPENAI_ENDPOINT": ("model", "endpoint"),
    "AZURE_OPENAI_API_KEY": ("model", "api_key"),
    "AZURE_OPENAI_DEPLOYMENT": ("model", "deployment"),
    "AZURE_OPENAI_API_VERSION": ("model", "api_version"),
    "SMTP_HOST": ("mail", "host"),
    "SMTP_PORT": ("mail", "port"),
    "SMTP_USER": ("mail", "user"),
    "SMTP_PASS": ("mail", "password"),
    "AWS_REGION": ("storage", "region"),
    "LOG_LEVEL": ("logging", "level"),
    "LOGS_ROOT": ("logging", "root"),
}


def resource_path(relative_path: str) -> str:
    """Ruta absoluta a un recurso relativo a la raíz del proyecto (o del paquete Lambda)."""
    base_path = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
    return os.path.join(base_path, relative_path)


def load_cfg(path: Optional[str] = None) -> Dict[str, Any]:
    config_path = path or os.getenv("SETTINGS_PATH") or resource_path(DEFAULT_SETTINGS)
    if not os.path.exists(config_path):
        return {}
    with open(config_path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def apply_env(cfg: Dict[str, Any], environ: Mapping[str, str]) -> Dict[str, Any]:
    out = {section: dict(values or {}) for section, values in cfg.items()}
    for var, (section, field) in ENV_OVERRIDES.items():
        value = environ.get(var)
        if value is None or value == "":
            continue
        out.setdefault(section, {})[field] = value
    return out


def load_settings(path: Optional[str] = None, environ: Optional[Mapping[str, str]] = None) -> Settings:
    """YAML base + overrides de entorno, validado con pydantic."""
    cfg = load_cfg(path)
    return Settings.model_validate(apply_env(cfg, os.environ if environ is None else environ))
