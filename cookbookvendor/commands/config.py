import click
from cookbookvendor.config import (
    load_config, save_config, get_config_path, generate_default_config, split_path_list
)
from cookbookvendor.exit_codes import UsageError
from cookbookvendor.cli_utils import standard_command
import json


@click.group("config")
def config_cmd():
    """Configuration management commands."""
    pass


@config_cmd.command("show")
@click.option("--pretty", is_flag=True, help="Display as formatted JSON instead of single-line JSONL")
@click.option("--path", is_flag=True, help="Show the config file path being used")
def show_config(pretty, path):
    """Show the current configuration with all merges applied.

    By default, outputs single-line JSON (JSONL format).
    Use --pretty for human-readable formatted output.
    Use --path to see which config file is being used.
    """
    if path:
        print(json.dumps({"config_path": str(get_config_path())}))
        return

    config = load_config()

    if pretty:
        print(json.dumps(config, indent=2, ensure_ascii=False))
    else:
        print(json.dumps(config, ensure_ascii=False))


@config_cmd.command("init")
@standard_command
def init_config(**kwargs):
    """Write the default configuration file if there is none yet."""
    progress = kwargs['progress']
    config_path, created = generate_default_config()
    if created:
        progress.success(f"Configuration written to {config_path}")
    else:
        progress(f"Configuration already exists at {config_path}")
    return {"config_path": str(config_path), "created": created}


@config_cmd.command("cookbook-path")
@click.argument("paths", metavar="PATH:PATH")
@standard_command
def set_cookbook_path(paths, **kwargs):
    """Set the colon-separated cookbook path; the first entry is the install root."""
    cookbook_path = split_path_list(paths)
    if not cookbook_path:
        raise UsageError("Expected at least one path, e.g. ~/chef-repo/cookbooks")

    config = load_config()
    config.setdefault("general", {})["cookbook_path"] = cookbook_path
    config_path = save_config(config)
    kwargs['progress'].success(f"Cookbooks will be installed into {cookbook_path[0]}")
    return {"config_path": str(config_path), "cookbook_path": cookbook_path}
