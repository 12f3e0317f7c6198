"""
Main CLI entry point for Envoy.

Provides the command-line interface using Click:
- envoy skill ...   skill listing and resolution
- envoy stack ...   stack detection and stack profiles
- envoy config ...  effective configuration
"""

import json as _json
import logging as _logging
import pathlib as _pathlib
import sys as _sys
import typing as _typing

import click as _click
import rich.console as _rich_console
import yaml as _yaml

import envoy
import envoy.config as config
import envoy.skills as skills
import envoy.stacks as stacks

# Custom Click context settings for better help formatting
CONTEXT_SETTINGS: dict[str, _typing.Any] = {
    "help_option_names": ["-h", "--help"],
    "max_content_width": 100,
}

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


def _configure_logging(level: str) -> None:
    """Send diagnostic logging to stderr at the given level."""
    _logging.basicConfig(level=level, format=LOG_FORMAT, stream=_sys.stderr, force=True)


def _settings(ctx: _click.Context) -> config.Settings:
    settings: config.Settings = ctx.obj["settings"]
    return settings


def _echo_json(data: _typing.Any) -> None:
    _click.echo(_json.dumps(data, indent=2))


@_click.group(context_settings=CONTEXT_SETTINGS)
@_click.version_option(envoy.__version__, "-v", "--version", prog_name="envoy")
@_click.option(
    "--verbose",
    is_flag=True,
    help="Enable debug logging on stderr",
)
@_click.option(
    "--plugin-root",
    type=_click.Path(file_okay=False, path_type=_pathlib.Path),
    default=None,
    help="Envoy plugin directory (default: $CLAUDE_PLUGIN_ROOT or cwd)",
)
@_click.pass_context
def cli(
    ctx: _click.Context,
    verbose: bool,
    plugin_root: _pathlib.Path | None,
) -> None:
    """
    Envoy - skill resolution and stack detection.

    \b
    Examples:
        envoy skill list                     # All skills, shadowing marked
        envoy skill show brainstorming       # Personal copy if present
        envoy skill show envoy:brainstorming # Always the plugin copy
        envoy stack detect                   # Stacks in the current project
        envoy stack files src/App.tsx        # Stacks touched by a diff
    """
    try:
        settings = config.Settings()
    except config.ConfigFileError as e:
        _click.echo(f"Error: {e}", err=True)
        raise SystemExit(1) from None

    if plugin_root is not None:
        settings.plugin_root = plugin_root

    _configure_logging("DEBUG" if verbose else settings.logging.level)

    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings


# =============================================================================
# Skill Commands
# =============================================================================


@cli.group(name="skill")
def skill_group() -> None:
    """Skill discovery and resolution commands."""
    pass


@skill_group.command(name="list")
@_click.option("--json", "json_output", is_flag=True, help="JSON output")
@_click.pass_context
def skill_list(ctx: _click.Context, json_output: bool) -> None:
    """List skills from the personal and plugin roots."""
    settings = _settings(ctx)
    found = skills.list_all_skills(
        settings.plugin_skills_dir,
        settings.personal_skills_dir,
        settings.skills.max_depth,
    )

    if json_output:
        _echo_json([s.to_dict() for s in found])
        return

    _click.echo("Skill Roots:")
    roots = [("personal", settings.personal_skills_dir), ("plugin", settings.plugin_skills_dir)]
    for label, path in roots:
        if path is None:
            _click.echo(f"  {label}: (disabled)")
            continue
        exists = "✓" if path.is_dir() else "(not found)"
        _click.echo(f"  {label}: {path} {exists}")
    _click.echo()

    if not found:
        _click.echo("No skills found.")
        return

    _click.echo(f"Discovered Skills ({len(found)}):")
    _click.echo(f"{'Name':<30} {'Source':<10} {'Status'}")
    _click.echo("-" * 60)
    for s in found:
        status = "shadowed" if s.shadowed else ""
        _click.echo(f"{s.name:<30} {s.source_type.value:<10} {status}".rstrip())


def _resolve_or_exit(
    settings: config.Settings,
    name: str,
    json_output: bool,
) -> skills.ResolvedSkill:
    resolved = skills.resolve_skill_path(
        name,
        settings.plugin_skills_dir,
        settings.personal_skills_dir,
        namespace=settings.skills.namespace,
    )
    if resolved is None:
        if json_output:
            _echo_json({"error": f"Skill not found: {name}"})
        else:
            _click.echo(f"Error: Skill '{name}' not found", err=True)
        raise SystemExit(1)
    return resolved


@skill_group.command(name="resolve")
@_click.argument("name")
@_click.option("--json", "json_output", is_flag=True, help="JSON output")
@_click.pass_context
def skill_resolve(ctx: _click.Context, name: str, json_output: bool) -> None:
    """Print the SKILL.md a skill reference resolves to."""
    resolved = _resolve_or_exit(_settings(ctx), name, json_output)

    if json_output:
        _echo_json(resolved.to_dict())
    else:
        _click.echo(f"{resolved.skill_file} ({resolved.source_type.value})")


@skill_group.command(name="show")
@_click.argument("name")
@_click.option("--json", "json_output", is_flag=True, help="JSON output")
@_click.pass_context
def skill_show(ctx: _click.Context, name: str, json_output: bool) -> None:
    """Show a resolved skill's metadata and body."""
    resolved = _resolve_or_exit(_settings(ctx), name, json_output)
    frontmatter = skills.extract_frontmatter(resolved.skill_file)
    body = skills.read_skill_body(resolved.skill_file)

    if json_output:
        data = resolved.to_dict()
        data["name"] = frontmatter.name if frontmatter else None
        data["description"] = frontmatter.description if frontmatter else None
        data["body"] = body
        _echo_json(data)
        return

    _click.echo(f"Skill: {frontmatter.name if frontmatter else name}")
    if frontmatter and frontmatter.description:
        _click.echo(f"  Description: {frontmatter.description}")
    _click.echo(f"  Path: {resolved.skill_file}")
    _click.echo(f"  Source: {resolved.source_type.value}")
    if frontmatter is None:
        _click.echo("  ⚠ Frontmatter missing or invalid")
    if body is not None:
        _click.echo()
        _click.echo(body.strip())


# =============================================================================
# Stack Commands
# =============================================================================


@cli.group(name="stack")
def stack_group() -> None:
    """Stack detection and profile commands."""
    pass


@stack_group.command(name="detect")
@_click.argument(
    "path",
    required=False,
    type=_click.Path(file_okay=False, path_type=_pathlib.Path),
)
@_click.option("--json", "json_output", is_flag=True, help="Output detected stacks as a JSON array")
@_click.option("--paths", "show_paths", is_flag=True, help="List profile files for detected stacks")
@_click.pass_context
def stack_detect(
    ctx: _click.Context,
    path: _pathlib.Path | None,
    json_output: bool,
    show_paths: bool,
) -> None:
    """Detect technology stacks in a project (default: the configured project root)."""
    settings = _settings(ctx)
    project_dir = path or settings.project_root
    query = stacks.LocalFilesystemQuery(
        timeout=settings.stacks.timeout_seconds,
        ignored_dirs=settings.stacks.ignored_dirs,
    )
    detected = stacks.detect_stacks(
        project_dir,
        query=query,
        file_max_depth=settings.stacks.file_max_depth,
    )

    if json_output:
        _echo_json(detected)
        return

    if show_paths:
        for name in detected:
            profile_path = stacks.get_stack_profile_path(name, settings.stacks_dir)
            if profile_path.is_file():
                _click.echo(str(profile_path))
        return

    console = _rich_console.Console()
    if not detected:
        console.print("No stacks detected.")
        return
    console.print("Detected stacks:")
    for name in detected:
        console.print(f"  [green]✓[/green] {name}")


@stack_group.command(name="files")
@_click.argument("files", nargs=-1, required=True)
@_click.option("--json", "json_output", is_flag=True, help="JSON output")
def stack_files(files: tuple[str, ...], json_output: bool) -> None:
    """Detect stacks relevant to a list of changed files."""
    detected = stacks.detect_stacks_from_files(files)

    if json_output:
        _echo_json(detected)
    else:
        for name in detected:
            _click.echo(name)


@stack_group.command(name="rules")
@_click.option("--json", "json_output", is_flag=True, help="JSON output")
def stack_rules(json_output: bool) -> None:
    """List the built-in detection rules."""
    rows: list[dict[str, _typing.Any]] = []
    for rule in stacks.STACK_RULES:
        if isinstance(rule, stacks.FileExistenceRule):
            rows.append({"name": rule.name, "kind": "file", "pattern": rule.pattern})
        else:
            rows.append(
                {
                    "name": rule.name,
                    "kind": "content",
                    "pattern": "|".join(rule.fragments),
                    "files": list(rule.file_globs),
                }
            )

    if json_output:
        _echo_json(rows)
        return

    _click.echo(f"{'Name':<24} {'Kind':<8} {'Pattern'}")
    _click.echo("-" * 70)
    for row in rows:
        scope = f"  in {', '.join(row['files'])}" if "files" in row else ""
        _click.echo(f"{row['name']:<24} {row['kind']:<8} {row['pattern']}{scope}")


@stack_group.command(name="profile")
@_click.argument("name")
@_click.option(
    "--section",
    type=_click.Choice(["mistakes", "checklist"]),
    default=None,
    help="Print only one section of the profile",
)
@_click.pass_context
def stack_profile(ctx: _click.Context, name: str, section: str | None) -> None:
    """Print a stack profile, or one of its sections."""
    settings = _settings(ctx)
    content = stacks.load_stack_profile(name, settings.stacks_dir)
    if content is None:
        _click.echo(f"Error: No stack profile for '{name}' in {settings.stacks_dir}", err=True)
        raise SystemExit(1)

    if section is None:
        _click.echo(content.rstrip())
        return

    if section == "mistakes":
        extracted = stacks.extract_common_mistakes(content)
        heading = "Common Mistakes"
    else:
        extracted = stacks.extract_review_checklist(content)
        heading = "Review Checklist"

    if extracted is None:
        _click.echo(f"Error: Profile '{name}' has no '{heading}' section", err=True)
        raise SystemExit(1)
    _click.echo(extracted)


@stack_group.command(name="profiles")
@_click.pass_context
def stack_profiles(ctx: _click.Context) -> None:
    """List available stack profiles."""
    settings = _settings(ctx)
    names = stacks.list_stack_profiles(settings.stacks_dir)
    if not names:
        _click.echo(f"No stack profiles in {settings.stacks_dir}")
        return
    for name in names:
        _click.echo(name)


# =============================================================================
# Config Commands
# =============================================================================


@cli.group(name="config")
def config_group() -> None:
    """Configuration commands."""
    pass


@config_group.command(name="show")
@_click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@_click.pass_context
def config_show(ctx: _click.Context, as_json: bool) -> None:
    """Show the effective configuration."""
    settings = _settings(ctx)
    data = settings.to_dict()

    if as_json:
        _echo_json(data)
    else:
        _click.echo(_yaml.safe_dump(data, sort_keys=False).rstrip())

    extra = settings.get_extra_fields()
    if extra:
        _click.echo("Unknown config keys (possible typos):", err=True)
        for key in sorted(extra):
            _click.echo(f"  {key}", err=True)


def main() -> None:
    """Main entry point with correct program name."""
    cli(prog_name="envoy")


if __name__ == "__main__":
    main()
