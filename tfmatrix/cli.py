"""Command-line interface for tfmatrix."""

import json
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Optional

import click

from tfmatrix import __version__
from tfmatrix.config import Settings
from tfmatrix.core.authorizer import resolve_roles
from tfmatrix.core.change_detector import ChangeDetector
from tfmatrix.core.errors import TfMatrixError
from tfmatrix.core.git_client import GitClient
from tfmatrix.core.graph import DependencyGraph, matrix_to_dict
from tfmatrix.core.graph_builder import GraphBuilder, load_ignore_patterns
from tfmatrix.core.inspectors import TerraformInspector, create_inspector
from tfmatrix.core.operator import CommandOperator
from tfmatrix.core.target_selector import select_targets as select_graph_targets
from tfmatrix.core.terraform_runner import ensure_terraform
from tfmatrix.security.sanitizer import SecurityError
from tfmatrix.utils import setup_logging, validate_workspace_dir

logger = logging.getLogger(__name__)


@contextmanager
def _reported_errors():
    """Turn domain errors into a one-line message and exit status 1."""
    try:
        yield
    except (TfMatrixError, SecurityError) as e:
        raise click.ClickException(str(e)) from e


def _workspace_root(root: Optional[str]) -> Path:
    """Return the given directory, or the top level of the current git checkout."""
    if root:
        path = Path(root).resolve()
        if not validate_workspace_dir(path):
            raise click.ClickException(f"Path does not exist: {root}")
        return path
    return Path(GitClient(".").toplevel())


def _settings(ctx: click.Context, root: Path) -> Settings:
    return Settings(workspace_root=root, config_file=ctx.obj.get("config_file"))


def _write_json(path: Path, data: Any):
    with open(path, 'w', encoding='utf-8') as f:
        f.write(json.dumps(data, indent=2) + "\n")


def _deps_path(root: Path, settings: Settings, deps_file: Optional[str]) -> Path:
    return Path(deps_file) if deps_file else root / settings.get("deps_file")


@click.group()
@click.version_option(version=__version__, prog_name="tfmatrix")
@click.option("--log-level", default="INFO", show_default=True,
              type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False))
@click.option("--log-file/--no-log-file", default=False, help="Also write a debug log file.")
@click.option("--config", "config_file", default=None, type=click.Path(dir_okay=False),
              help="Settings file (default: <workspace>/.tfmatrix.json).")
@click.pass_context
def main(ctx: click.Context, log_level: str, log_file: bool, config_file: Optional[str]):
    """tfmatrix - decide which Terraform roots to plan or apply."""
    setup_logging(log_level=log_level, log_file=log_file)
    ctx.ensure_object(dict)
    ctx.obj["config_file"] = config_file


@main.command("generate-deps")
@click.option("--root", "root_arg", default=None, help="Workspace root (default: git top level).")
@click.option("--output", default=None, help="Snapshot path (default: <root>/.tfdeps.json).")
@click.option("--ignore-file", default=None, help="Ignore file (default: <root>/.tfdepsignore).")
@click.option("--static", is_flag=True, help="Read HCL files instead of running terraform.")
@click.pass_context
def generate_deps(ctx: click.Context, root_arg: Optional[str], output: Optional[str],
                  ignore_file: Optional[str], static: bool):
    """Scan the workspace and write the dependency graph snapshot."""
    with _reported_errors():
        root = _workspace_root(root_arg)
        settings = _settings(ctx, root)

        terraform_binary = settings.get("terraform_binary")
        timeout = settings.get("command_timeout")
        inspector = create_inspector(
            "hcl" if static else settings.get("inspector"),
            terraform_binary=terraform_binary,
            timeout=timeout,
        )
        if isinstance(inspector, TerraformInspector):
            logger.info(ensure_terraform(terraform_binary))

        ignore_patterns = load_ignore_patterns(ignore_file, root, settings.get("ignore_file"))

        builder = GraphBuilder(
            root,
            inspector,
            git_client=GitClient(str(root), settings.get("git_binary")),
            marker_file=settings.get("marker_file"),
            max_workers=settings.get("max_workers"),
            default_ignore_patterns=settings.get("default_ignore_patterns"),
        )
        graph = builder.build(ignore_patterns)

        output_path = Path(output) if output else root / settings.get("deps_file")
        graph.save(output_path)
        logger.info(f"Success! Dependency graph written to {output_path}")


@main.command("detect-changes")
@click.option("--base", required=True, help="Base revision.")
@click.option("--head", required=True, help="Head revision.")
@click.option("--deps-file", default=None, help="Snapshot path (default: <root>/.tfdeps.json).")
@click.option("--output", default=None, help="Matrix path (default: <root>/.tfchanges.json).")
@click.pass_context
def detect_changes(ctx: click.Context, base: str, head: str, deps_file: Optional[str],
                   output: Optional[str]):
    """Write the matrix of roots affected between two revisions."""
    with _reported_errors():
        root = _workspace_root(None)
        settings = _settings(ctx, root)

        graph = DependencyGraph.load(_deps_path(root, settings, deps_file))
        git_client = GitClient(str(root), settings.get("git_binary"))
        entries = ChangeDetector(git_client).detect(base, head, graph)

        output_path = Path(output) if output else root / settings.get("changes_file")
        _write_json(output_path, matrix_to_dict(entries))
        logger.info(f"Changes written to {output_path}")


@main.command("select-targets")
@click.option("--targets", required=True, help="Space-separated root paths.")
@click.option("--deps-file", default=None, help="Snapshot path (default: <root>/.tfdeps.json).")
@click.option("--output", default=None, help="Matrix path; printed to stdout when omitted.")
@click.pass_context
def select_targets(ctx: click.Context, targets: str, deps_file: Optional[str], output: Optional[str]):
    """Validate explicit targets and write their matrix."""
    with _reported_errors():
        target_list = targets.split()
        if not target_list:
            raise click.ClickException("Missing required argument: targets")

        root = _workspace_root(None)
        settings = _settings(ctx, root)
        deps_path = _deps_path(root, settings, deps_file)

        graph = DependencyGraph.load(deps_path)
        entries = select_graph_targets(target_list, graph, deps_file=deps_path.name)

        if output:
            _write_json(Path(output), matrix_to_dict(entries))
            logger.info(f"Targets written to {output}")
        else:
            click.echo(json.dumps([entry.to_dict() for entry in entries], indent=2))


@main.command("operate-command")
@click.option("--comment-body", default="", help="Raw comment text.")
@click.option("--base-sha", default="", help="Pull request base revision.")
@click.option("--head-sha", default="", help="Pull request head revision.")
@click.option("--deps-file", default=None, help="Snapshot path (default: <root>/.tfdeps.json).")
@click.pass_context
def operate_command(ctx: click.Context, comment_body: str, base_sha: str, head_sha: str,
                    deps_file: Optional[str]):
    """Parse a chat command and print the resulting operation as JSON."""
    with _reported_errors():
        root = _workspace_root(None)
        settings = _settings(ctx, root)
        deps_path = _deps_path(root, settings, deps_file)
        git_client = GitClient(str(root), settings.get("git_binary"))

        def detect(base, head):
            graph = DependencyGraph.load(deps_path)
            return ChangeDetector(git_client).detect(base, head, graph)

        def select(target_list):
            graph = DependencyGraph.load(deps_path)
            return select_graph_targets(target_list, graph, deps_file=deps_path.name)

        operator = CommandOperator(detect, select, trigger=settings.get("command.trigger"))
        result = operator.operate(comment_body, base_sha, head_sha)
        click.echo(json.dumps(result.to_dict(), indent=2))


@main.command()
@click.option("--actor", required=True, help="GitHub login to look up.")
@click.option("--permission-file", default=None,
              help="Roles file (default: .terraform-permissions.json in the current directory).")
@click.pass_context
def authorize(ctx: click.Context, actor: str, permission_file: Optional[str]):
    """Print the roles granted to an actor as JSON."""
    with _reported_errors():
        settings = Settings(config_file=ctx.obj.get("config_file"))
        config_path = Path(permission_file or settings.get("permission_file")).resolve()
        click.echo(json.dumps(resolve_roles(actor, config_path)))


if __name__ == "__main__":
    main()
