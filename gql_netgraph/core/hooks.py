"""Extension points around client generation.

A pre hook sees the parsed ``@netlify`` functions before any template is
rendered and returns the functions that should end up in the client. A post
hook sees each exported file (the runtime library, its type declarations or a
framework handler) and may rewrite its text.

    class SkipDrafts:
        def pre_generate(self, functions):
            return [f for f in functions if "draft" not in f.function.description]

    class Stamp:
        def post_generate(self, filename, content):
            return content if filename.endswith(".d.ts") else "// stamped\\n" + content
"""

from typing import Protocol, runtime_checkable

from .console import get_logger
from .ir import ParsedFunction


@runtime_checkable
class PreGenerateHook(Protocol):
    """Narrows or reorders parsed functions ahead of rendering."""

    def pre_generate(self, functions: list[ParsedFunction]) -> list[ParsedFunction]: ...


@runtime_checkable
class PostGenerateHook(Protocol):
    """Rewrites the text of one exported file.

    ``filename`` is the export path relative to the output directory, for
    example ``netlify/functions/netlifyGraph/index.d.ts``.
    """

    def post_generate(self, filename: str, content: str) -> str: ...


class AddBannerHook:
    """Prepends a fixed banner, separated from the code by one blank line."""

    def __init__(self, banner: str):
        self.banner = banner.rstrip("\n")

    def post_generate(self, _filename: str, content: str) -> str:
        return f"{self.banner}\n\n{content}"


class FilterOperationsHook:
    """Drops functions by operation kind or operation name prefix.

    ``include_prefix`` keeps only matching names, ``exclude_prefix`` removes
    matching names, and ``exclude_kinds`` removes whole operation kinds such
    as ``{"subscription"}``.
    """

    def __init__(
        self,
        exclude_prefix: str | None = None,
        include_prefix: str | None = None,
        exclude_kinds: set[str] | None = None,
    ):
        self.exclude_prefix = exclude_prefix
        self.include_prefix = include_prefix
        self.exclude_kinds = frozenset(exclude_kinds or ())

    def keeps(self, function: ParsedFunction) -> bool:
        if function.kind in self.exclude_kinds:
            return False
        name = function.operation_name
        wanted = self.include_prefix is None or name.startswith(self.include_prefix)
        unwanted = self.exclude_prefix is not None and name.startswith(self.exclude_prefix)
        return wanted and not unwanted

    def pre_generate(self, functions: list[ParsedFunction]) -> list[ParsedFunction]:
        kept = [function for function in functions if self.keeps(function)]
        if len(kept) != len(functions):
            get_logger(__name__).debug(
                "Filtered out %d of %d functions", len(functions) - len(kept), len(functions)
            )
        return kept


class HookRunner:
    """Ordered chains of pre and post hooks used by the client generator."""

    def __init__(self):
        self.pre_hooks: list[PreGenerateHook] = []
        self.post_hooks: list[PostGenerateHook] = []

    def add_pre_hook(self, hook: PreGenerateHook):
        self.pre_hooks.append(hook)

    def add_post_hook(self, hook: PostGenerateHook):
        self.post_hooks.append(hook)

    def run_pre_hooks(self, functions: list[ParsedFunction]) -> list[ParsedFunction]:
        """Feed each hook the output of the one before it."""
        result = functions
        for hook in self.pre_hooks:
            result = hook.pre_generate(result)
        return result

    def run_post_hooks(self, filename: str, content: str) -> str:
        """Rewrite ``content`` through every post hook, first added first."""
        result = content
        for hook in self.post_hooks:
            result = hook.post_generate(filename, result)
        return result
