"""
Stack detection rules.

Each rule names a technology stack and says how to recognise it in a
project tree:
- FileExistenceRule: a file matching a glob exists near the project root
- ContentMatchRule: a file in scope contains one of several literal fragments

STACK_RULES is evaluated in order; the order is also the order of
detected stacks in results.
"""

from __future__ import annotations

import dataclasses as _dataclasses
import re as _re


@_dataclasses.dataclass(frozen=True, slots=True)
class FileExistenceRule:
    """Matches when a file matching `pattern` exists."""

    name: str
    """Stack name contributed on match."""

    pattern: str
    """Glob matched against file names (or root-relative paths if it has a '/')."""


@_dataclasses.dataclass(frozen=True, slots=True)
class ContentMatchRule:
    """Matches when a file in scope contains any of `fragments`."""

    name: str
    """Stack name contributed on match."""

    fragments: tuple[str, ...]
    """Literal text fragments; any one of them is enough."""

    file_globs: tuple[str, ...]
    """File name globs limiting which files are searched."""

    @property
    def regex(self) -> _re.Pattern[str]:
        """Alternation of the escaped fragments."""
        return _re.compile("|".join(_re.escape(f) for f in self.fragments))


StackRule = FileExistenceRule | ContentMatchRule


def _content(name: str, fragments: str, *file_globs: str) -> ContentMatchRule:
    """Build a content rule from '|'-separated fragments."""
    return ContentMatchRule(
        name=name,
        fragments=tuple(fragments.split("|")),
        file_globs=file_globs,
    )


STACK_RULES: tuple[StackRule, ...] = (
    # Core stacks
    FileExistenceRule("dotnet", "*.csproj"),
    _content("react", '"react"', "package.json"),
    FileExistenceRule("typescript", "tsconfig.json"),
    _content("postgresql", "Npgsql|PostgreSQL", "*.csproj"),
    # Testing stacks
    _content("testing-dotnet", "xunit|Moq|FluentAssertions", "*.csproj"),
    _content("testing-playwright", "@playwright/test", "package.json"),
    # Infrastructure stacks
    FileExistenceRule("docker-compose", "docker-compose*.yml"),
    _content("azure-container-apps", "containerApps", "*.bicep"),
    FileExistenceRule("azure-static-web-apps", "staticwebapp.config.json"),
    _content("azure-postgresql", "flexibleServers", "*.bicep"),
    FileExistenceRule("bicep", "*.bicep"),
    FileExistenceRule("github-actions", ".github/workflows/*.yml"),
    # Supporting stacks
    _content("entity-framework", "Microsoft.EntityFrameworkCore", "*.csproj"),
    _content("serilog", "Serilog", "*.csproj"),
    _content("jwt-oauth", "JwtBearer|OAuth|OpenIdConnect", "*.csproj"),
    _content("api-patterns", "AddControllers|ApiController", "*.cs"),
    _content("shadcn-radix", "@radix-ui|class-variance-authority", "package.json"),
    _content("react-query", "@tanstack/react-query", "package.json"),
    _content("react-hook-form", "react-hook-form", "package.json"),
    _content("tailwind", "tailwindcss", "package.json"),
    _content("orval", '"orval"', "package.json"),
    _content("application-insights", "ApplicationInsights", "*.csproj", "package.json"),
    _content("health-checks", "AddHealthChecks|HealthChecks", "*.csproj", "*.cs"),
    _content(
        "openapi",
        "Swashbuckle|AddSwaggerGen|AddEndpointsApiExplorer",
        "*.csproj",
        "*.cs",
    ),
)
"""Built-in detection rules, in evaluation order."""

SECURITY_STACK = "security"
"""Stack added whenever a web application indicator is detected."""

WEB_INDICATOR_STACKS: frozenset[str] = frozenset({"dotnet", "react", "api-patterns"})
"""Stacks that mark a project as a web application."""


def get_rule(name: str) -> StackRule | None:
    """Look up a built-in rule by stack name."""
    for rule in STACK_RULES:
        if rule.name == name:
            return rule
    return None
