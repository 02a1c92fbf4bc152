import yaml

DEFAULTS = {
    "memory_size": 8192,        # bytes, multiple of 4
    "cycle_limit": 2000000,     # safety ceiling against runaway branch loops
    "execution_speed": 10,      # ms between cycles in run mode
    "forwarding": True,
    "error_log_size": 1000,
}


def load_config(config_path: str = None, **overrides) -> dict:
    """
    Defaults, then the YAML file at `config_path`, then keyword overrides.
    Overrides that are None are ignored so argparse values can be passed straight through.
    """
    config = dict(DEFAULTS)

    if config_path:
        with open(config_path, 'r') as file:
            loaded = yaml.safe_load(file) or {}
        if not isinstance(loaded, dict):
            raise ValueError(f"{config_path}: expected a mapping of settings")
        config.update(loaded)

    config.update({key: value for key, value in overrides.items() if value is not None})

    unknown = sorted(set(config) - set(DEFAULTS))
    if unknown:
        raise ValueError(f"Unknown configuration keys: {', '.join(unknown)}")
    return config
