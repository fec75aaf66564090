import configparser
from dataclasses import dataclass
from pathlib import Path

DEFAULT_TOKEN_FILE = str(Path.home() / ".gdrive-davfs" / "gdrive-token.json")


@dataclass
class GoogleDriveConfig:
    token_file: str = DEFAULT_TOKEN_FILE
    root_folder_id: str = "root"  # Well-known ID of "My Drive"


@dataclass
class CacheConfig:
    lookup_ttl_seconds: float = 60
    listing_ttl_seconds: float = 5
    max_entries: int = 10000


@dataclass
class ConnectionConfig:
    read_stall_timeout_seconds: float = 15
    connect_timeout_seconds: float = 30


@dataclass
class StoreConfig:
    trash_on_delete: bool = False


@dataclass
class LogConfig:
    level: str = "INFO"
    library_level: str = "WARNING"
    file: str = "gdrive-davfs.log"
    console: bool = True


@dataclass
class AppConfig:
    gdrive: GoogleDriveConfig
    cache: CacheConfig
    connection: ConnectionConfig
    store: StoreConfig
    logging: LogConfig


def _parse_bool(value: str) -> bool:
    return value.lower() in ("true", "1", "yes")


def _parse_number(section: configparser.SectionProxy, key: str, cast):
    raw = section.get(key)
    try:
        return cast(raw)
    except ValueError:
        kind = "an integer" if cast is int else "a number"
        raise ValueError(f"Invalid {key} value in config: '{raw}' - must be {kind}")


def load_config(config_path: str | None = None, **cli_args) -> AppConfig:
    """
    Load configuration from an INI file and/or CLI arguments.
    CLI arguments take precedence over config file.

    Args:
        config_path: Path to the INI configuration file.
        **cli_args: Key-value pairs from command line arguments.

    Returns:
        AppConfig: The populated configuration object.

    Raises:
        FileNotFoundError: If config_path is provided but does not exist.
        ValueError: If a value is malformed or the cache TTLs are inconsistent.
    """
    gdrive_config = {
        "token_file": DEFAULT_TOKEN_FILE,
        "root_folder_id": "root",
    }
    cache_config = {
        "lookup_ttl_seconds": 60.0,
        "listing_ttl_seconds": 5.0,
        "max_entries": 10000,
    }
    connection_config = {
        "read_stall_timeout_seconds": 15.0,
        "connect_timeout_seconds": 30.0,
    }
    store_config = {
        "trash_on_delete": False,
    }
    log_config = {
        "level": "INFO",
        "library_level": "WARNING",
        "file": "gdrive-davfs.log",
        "console": True,
    }

    # Parse INI file if provided
    if config_path is not None:
        config_file = Path(config_path)
        if not config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        parser = configparser.ConfigParser()
        parser.read(config_file, encoding="utf-8")

        # Load [gdrive] section
        if parser.has_section("gdrive"):
            gdrive_section = parser["gdrive"]
            if gdrive_section.get("token_file"):
                gdrive_config["token_file"] = gdrive_section.get("token_file")
            if gdrive_section.get("root_folder_id"):
                gdrive_config["root_folder_id"] = gdrive_section.get("root_folder_id")

        # Load [cache] section
        if parser.has_section("cache"):
            cache_section = parser["cache"]
            if cache_section.get("lookup_ttl_seconds"):
                cache_config["lookup_ttl_seconds"] = _parse_number(
                    cache_section, "lookup_ttl_seconds", float
                )
            if cache_section.get("listing_ttl_seconds"):
                cache_config["listing_ttl_seconds"] = _parse_number(
                    cache_section, "listing_ttl_seconds", float
                )
            if cache_section.get("max_entries"):
                cache_config["max_entries"] = _parse_number(cache_section, "max_entries", int)

        # Load [connection] section
        if parser.has_section("connection"):
            conn_section = parser["connection"]
            if conn_section.get("read_stall_timeout_seconds"):
                connection_config["read_stall_timeout_seconds"] = _parse_number(
                    conn_section, "read_stall_timeout_seconds", float
                )
            if conn_section.get("connect_timeout_seconds"):
                connection_config["connect_timeout_seconds"] = _parse_number(
                    conn_section, "connect_timeout_seconds", float
                )

        # Load [store] section
        if parser.has_section("store"):
            store_section = parser["store"]
            if store_section.get("trash_on_delete"):
                store_config["trash_on_delete"] = _parse_bool(store_section.get("trash_on_delete"))

        # Load [logging] section
        if parser.has_section("logging"):
            log_section = parser["logging"]
            if log_section.get("level"):
                log_config["level"] = log_section.get("level")
            if log_section.get("library_level"):
                log_config["library_level"] = log_section.get("library_level")
            if "file" in log_section:
                log_config["file"] = log_section.get("file")
            if log_section.get("console"):
                log_config["console"] = _parse_bool(log_section.get("console"))

    # Override with CLI arguments (cli_args take precedence)
    if cli_args.get("token_file") is not None:
        gdrive_config["token_file"] = cli_args["token_file"]
    if cli_args.get("root_folder") is not None:
        gdrive_config["root_folder_id"] = cli_args["root_folder"]
    if cli_args.get("stall_timeout") is not None:
        connection_config["read_stall_timeout_seconds"] = float(cli_args["stall_timeout"])
    if cli_args.get("trash"):
        store_config["trash_on_delete"] = True
    if cli_args.get("debug"):
        log_config["level"] = "DEBUG"
        log_config["console"] = True

    # Validate cache and timeout values
    for key in ("lookup_ttl_seconds", "listing_ttl_seconds"):
        if cache_config[key] <= 0:
            raise ValueError(f"{key} must be positive, got {cache_config[key]}")
    if cache_config["listing_ttl_seconds"] > cache_config["lookup_ttl_seconds"]:
        raise ValueError("listing_ttl_seconds must not exceed lookup_ttl_seconds")
    if cache_config["max_entries"] < 1:
        raise ValueError(f"max_entries must be at least 1, got {cache_config['max_entries']}")
    if connection_config["read_stall_timeout_seconds"] <= 0:
        raise ValueError("read_stall_timeout_seconds must be positive")

    return AppConfig(
        gdrive=GoogleDriveConfig(
            token_file=gdrive_config["token_file"],
            root_folder_id=gdrive_config["root_folder_id"],
        ),
        cache=CacheConfig(
            lookup_ttl_seconds=cache_config["lookup_ttl_seconds"],
            listing_ttl_seconds=cache_config["listing_ttl_seconds"],
            max_entries=cache_config["max_entries"],
        ),
        connection=ConnectionConfig(
            read_stall_timeout_seconds=connection_config["read_stall_timeout_seconds"],
            connect_timeout_seconds=connection_config["connect_timeout_seconds"],
        ),
        store=StoreConfig(
            trash_on_delete=store_config["trash_on_delete"],
        ),
        logging=LogConfig(
            level=log_config["level"],
            library_level=log_config["library_level"],
            file=log_config["file"],
            console=log_config["console"],
        ),
    )
