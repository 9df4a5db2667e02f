"""Path and file safety checks.

The traversal defense is canonical-path *equality*: a directory path is
only accepted when the filesystem's own canonical form (symlinks and
relative segments resolved) is byte-identical to what the caller supplied.
A path that is merely *valid* after canonicalization is not enough; the
raw string must already be canonical.
"""

from __future__ import annotations

import os
from collections.abc import Callable, Sequence

from inputguard.validation.outcome import ValidationOutcome, invalid
from inputguard.validation.rules import is_empty

MAX_PATH_LENGTH = 255

InputCheck = Callable[[str, str | None, str, int, bool], ValidationOutcome]


class FileSafetyChecker:
    """Directory path, file name, content size and upload checks.

    Args:
        check_input:        Whitelist check of the caller-facing validator
                            (used for the ``FileName`` shape).
        check_path_input:   Whitelist check of the dedicated filesystem
                            validator (used for the ``DirectoryName`` shape).
        allowed_extensions: Lowercase extensions with a leading dot.
        max_upload_bytes:   Global upload ceiling, authoritative over any
                            per-call maximum.
    """

    def __init__(
        self,
        check_input: InputCheck,
        check_path_input: InputCheck,
        allowed_extensions: Sequence[str],
        max_upload_bytes: int,
    ) -> None:
        self._check_input = check_input
        self._check_path_input = check_path_input
        self.allowed_extensions = tuple(allowed_extensions)
        self.max_upload_bytes = max_upload_bytes

    # ── Directory paths ─────────────────────────────────────────────

    def check_directory_path(self, context: str, raw: str | None, allow_null: bool) -> ValidationOutcome:
        if is_empty(raw):
            if allow_null:
                return ValidationOutcome.accept(None)
            return invalid(
                "input_required",
                context,
                f"{context}: Input directory path required",
                f"Input directory path required: context={context}, input={raw!r}",
            )

        try:
            if not os.path.exists(raw):
                return invalid(
                    "path_not_found",
                    context,
                    f"{context}: Invalid directory name",
                    f"Invalid directory name does not exist: context={context}, input={raw!r}",
                )
            canonical_path = os.path.realpath(raw)
        except (OSError, ValueError) as exc:
            return invalid(
                "path_traversal",
                context,
                f"{context}: Invalid directory name",
                f"Failure to validate directory path: context={context}, input={raw!r}",
                cause=exc,
            )

        shape = self._check_path_input(context, canonical_path, "DirectoryName", MAX_PATH_LENGTH, False)
        if not shape.ok:
            return invalid(
                "path_traversal",
                context,
                f"{context}: Invalid directory name",
                f"Failure to validate directory path: context={context}, input={raw!r}, "
                f"canonical={canonical_path!r}",
                cause=shape.error,
            )

        if shape.value != raw:
            return invalid(
                "path_traversal",
                context,
                f"{context}: Invalid directory name",
                f"Invalid directory name does not match the canonical path: context={context}, "
                f"input={raw!r}, canonical={shape.value!r}",
            )
        return ValidationOutcome.accept(shape.value)

    # ── File names ──────────────────────────────────────────────────

    def check_file_name(self, context: str, raw: str | None, allow_null: bool) -> ValidationOutcome:
        if is_empty(raw):
            if allow_null:
                return ValidationOutcome.accept(None)
            return invalid(
                "input_required",
                context,
                f"{context}: Input file name required",
                f"Input required: context={context}, input={raw!r}",
            )

        try:
            canonical = os.path.basename(os.path.realpath(raw))
        except (OSError, ValueError) as exc:
            return invalid(
                "path_traversal",
                context,
                f"{context}: Invalid file name",
                f"Invalid file name could not be canonicalized: context={context}, input={raw!r}",
                cause=exc,
            )

        if canonical != raw:
            return invalid(
                "path_traversal",
                context,
                f"{context}: Invalid file name",
                f"Invalid file name does not match the canonical path: context={context}, "
                f"input={raw!r}, canonical={canonical!r}",
            )

        shape = self._check_input(context, raw, "FileName", MAX_PATH_LENGTH, True)
        if not shape.ok:
            return shape

        lowered = raw.lower()
        for ext in self.allowed_extensions:
            if lowered.endswith(ext):
                return ValidationOutcome.accept(canonical)

        return invalid(
            "file_extension",
            context,
            f"{context}: Invalid file name does not have valid extension ({', '.join(self.allowed_extensions)})",
            f"Invalid file name does not have valid extension ({', '.join(self.allowed_extensions)}): "
            f"context={context}, input={raw!r}",
        )

    # ── File content ────────────────────────────────────────────────

    def check_file_content(
        self, context: str, content: bytes | None, max_bytes: int, allow_null: bool
    ) -> ValidationOutcome:
        if content is None or len(content) == 0:
            if allow_null:
                return ValidationOutcome.accept(None)
            return invalid(
                "input_required",
                context,
                f"{context}: Input required",
                f"Input required: context={context}, input=<{0 if content is None else len(content)} bytes>",
            )

        if len(content) > self.max_upload_bytes:
            return invalid(
                "file_size",
                context,
                f"{context}: Invalid file content can not exceed {self.max_upload_bytes} bytes",
                f"Exceeded global upload ceiling ({len(content)} > {self.max_upload_bytes}): context={context}",
            )
        if len(content) > max_bytes:
            return invalid(
                "file_size",
                context,
                f"{context}: Invalid file content can not exceed {max_bytes} bytes",
                f"Exceeded max_bytes ({len(content)} > {max_bytes}): context={context}",
            )
        return ValidationOutcome.accept(content)

    # ── Uploads ─────────────────────────────────────────────────────

    def upload_checks(
        self,
        context: str,
        directory_path: str | None,
        filename: str | None,
        content: bytes | None,
        max_bytes: int,
        allow_null: bool,
    ) -> tuple[Callable[[], ValidationOutcome], ...]:
        """Deferred name, path and content checks, in that order.

        Callers decide whether to stop at the first failure or run all.
        """
        return (
            lambda: self.check_file_name(context, filename, allow_null),
            lambda: self.check_directory_path(context, directory_path, allow_null),
            lambda: self.check_file_content(context, content, max_bytes, allow_null),
        )
