import json
import os
import logging
from .types import QuoteConfig, ProviderConfig, ProviderType

DEFAULT_PROVIDERS = [
    ProviderConfig(name=ProviderType.SINA, priority=1),
    ProviderConfig(name=ProviderType.YAHOO, priority=2),
]

def load_config(config_path: str = "providers.json") -> QuoteConfig:
    """
    Loads quote provider settings.

    Expected layout:
        {
          "providers": {"sina": {"enabled": true, "priority": 1},
                        "yahoo": {"enabled": true, "priority": 2}},
          "poll_interval_seconds": 2,
          "request_timeout_seconds": 5,
          "data_dir": "./data"
        }
    Missing file or keys fall back to defaults.
    """
    providers = []
    poll_interval = 2.0
    timeout = 5.0
    data_dir = "./data"

    if os.path.exists(config_path):
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                data = json.load(f)

            for p_key, p_data in (data.get("providers") or {}).items():
                if not isinstance(p_data, dict) or not p_data.get("enabled", True):
                    continue
                try:
                    providers.append(ProviderConfig(
                        name=ProviderType(p_key.upper()),
                        priority=int(p_data.get("priority", 99))
                    ))
                except (ValueError, TypeError) as e:
                    logging.warning(f"Skipping provider {p_key}: {e}")

            poll_interval = float(data.get("poll_interval_seconds", poll_interval))
            timeout = float(data.get("request_timeout_seconds", timeout))
            data_dir = data.get("data_dir", data_dir)

        except (json.JSONDecodeError, ValueError, TypeError, AttributeError) as e:
            logging.error(f"Failed to load config file {config_path}: {e}")
    else:
        logging.info(f"Config file {config_path} not found. Using defaults.")

    if not providers:
        logging.info("No active providers configured. Using default SINA + YAHOO providers.")
        providers = list(DEFAULT_PROVIDERS)

    providers.sort(key=lambda x: x.priority)

    return QuoteConfig(
        providers=providers,
        poll_interval_seconds=poll_interval,
        request_timeout_seconds=timeout,
        data_dir=data_dir,
    )
