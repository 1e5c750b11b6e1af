"""TOML configuration loading and logging setup."""