"""Resolve ``$ref`` JSON Reference pointers in OpenAPI documents.

OpenAPI documents use ``$ref`` pointers (e.g.
``{"$ref": "#/components/schemas/Pet"}``) to avoid repetition. This module
walks a deep copy of the document and replaces references with their
targets. Two modes are supported, selected by
:class:`~httpapigen.models.ResolutionOptions`:

* **Bundle** (``resolve_external=False``, the default) -- internal pointers
  are dereferenced, except references to ``#/components/schemas/`` which are
  kept as named links once their target is confirmed to exist. External
  references are left untouched and never fetched.
* **Full** (``resolve_external=True``) -- every reference is inlined.
  External URLs must pass :func:`~httpapigen.parser.remote.check_external_url`
  and are loaded through a :class:`~httpapigen.parser.remote.Fetcher`.

Circular references are detected via the set of references currently on the
resolution stack and left in place at the cycle point, so a schema that
references itself keeps its ``$ref`` dict there and is listed in
``ResolvedDocument.circular_refs``.

The public functions are :func:`extract_reference_paths`,
:func:`classify_references`, :func:`resolve_references` and
:func:`validate_resolution`.
"""

from __future__ import annotations

import copy
from typing import Any, Callable, NamedTuple, Optional, Sequence
from urllib.parse import unquote, urldefrag, urljoin, urlsplit

from httpapigen.exceptions import ErrorKind, ReadError, ResolutionError
from httpapigen.models import DocumentFormat, ResolutionOptions, ResolvedDocument
from httpapigen.parser.reader import parse_content
from httpapigen.parser.remote import Fetcher, HttpxFetcher, check_external_url

SCHEMA_REF_PREFIX = "#/components/schemas/"


class ReferenceClassification(NamedTuple):
    """References split by whether they point into the same document."""

    internal: tuple[str, ...]
    external: tuple[str, ...]


def is_internal_reference(ref: str) -> bool:
    return ref.startswith("#/")


def extract_reference_paths(value: Any) -> list[str]:
    """Collect every ``$ref`` string in *value*, in document order.

    Duplicates are dropped; the first occurrence fixes the position.
    """
    found: dict[str, None] = {}
    _collect_refs(value, found)
    return list(found)


def _collect_refs(value: Any, found: dict[str, None]) -> None:
    if isinstance(value, dict):
        ref = value.get("$ref")
        if isinstance(ref, str):
            found.setdefault(ref, None)
        for item in value.values():
            _collect_refs(item, found)
    elif isinstance(value, list):
        for item in value:
            _collect_refs(item, found)


def classify_references(refs: Sequence[str]) -> ReferenceClassification:
    """Split *refs* into internal (``#/...``) and external references.

    Examples::

        >>> classify_references(["#/components/schemas/User", "https://example.com/s.json"])
        ReferenceClassification(internal=('#/components/schemas/User',), external=('https://example.com/s.json',))
    """
    return ReferenceClassification(
        internal=tuple(ref for ref in refs if is_internal_reference(ref)),
        external=tuple(ref for ref in refs if not is_internal_reference(ref)),
    )


def follow_pointer(root: Any, pointer: str) -> Any:
    """Return the value at JSON Pointer *pointer* (``"/a/b"``) within *root*.

    An empty pointer selects *root*. Segments are percent-decoded and
    RFC 6901 escapes (``~1`` for ``/``, ``~0`` for ``~``) are honoured.

    Raises:
        LookupError: If any segment does not exist.
    """
    if not pointer:
        return root
    if not pointer.startswith("/"):
        raise LookupError(f"JSON pointer must start with '/': {pointer!r}")

    current = root
    for raw_segment in pointer[1:].split("/"):
        segment = unquote(raw_segment).replace("~1", "/").replace("~0", "~")
        if isinstance(current, dict):
            if segment not in current:
                raise LookupError(f"key '{segment}' not found")
            current = current[segment]
        elif isinstance(current, list):
            try:
                current = current[int(segment)]
            except (ValueError, IndexError):
                raise LookupError(f"invalid array index '{segment}'") from None
        else:
            raise LookupError(f"cannot navigate into {type(current).__name__}")
    return current


class _Context(NamedTuple):
    """The document that internal pointers are currently relative to."""

    root: Any
    url: Optional[str] = None


class _Resolution:
    """State for one :func:`resolve_references` call."""

    def __init__(self, options: ResolutionOptions, fetcher: Fetcher):
        self.options = options
        self.fetcher = fetcher
        self.circular: dict[str, None] = {}
        self.linked: dict[str, None] = {}
        self.errors: list[str] = []
        self._documents: dict[str, Any] = {}

    def fail(self, error: ResolutionError, node: dict[str, Any]) -> dict[str, Any]:
        """Raise *error*, or record it and keep *node* in lenient mode."""
        if not self.options.continue_on_error:
            raise error
        self.errors.append(error.message)
        return node

    def resolve(self, obj: Any, ctx: _Context, seen: frozenset[str]) -> Any:
        if isinstance(obj, dict):
            ref = obj.get("$ref")
            if isinstance(ref, str):
                return self._resolve_ref(obj, ref, ctx, seen)
            return {key: self.resolve(value, ctx, seen) for key, value in obj.items()}
        if isinstance(obj, list):
            return [self.resolve(item, ctx, seen) for item in obj]
        return obj

    def _resolve_ref(
        self, node: dict[str, Any], ref: str, ctx: _Context, seen: frozenset[str]
    ) -> Any:
        if ref.startswith("#"):
            if ctx.url is None and not self.options.resolve_external:
                if ref.startswith(SCHEMA_REF_PREFIX):
                    return self._link(node, ref, ctx)
            identity = f"{ctx.url or ''}{ref}"
            if identity in seen:
                self.circular.setdefault(ref, None)
                return node
            try:
                target = follow_pointer(ctx.root, ref[1:])
            except LookupError as exc:
                return self.fail(
                    ResolutionError(
                        ErrorKind.RESOLUTION_INCOMPLETE,
                        f"Cannot resolve $ref '{ref}': {exc}",
                        cause=exc,
                    ),
                    node,
                )
            resolved = self.resolve(target, ctx, seen | {identity})
            return _merge_siblings(resolved, node, lambda value: self.resolve(value, ctx, seen))

        if not self.options.resolve_external:
            return node
        return self._resolve_external(node, ref, ctx, seen)

    def _link(self, node: dict[str, Any], ref: str, ctx: _Context) -> dict[str, Any]:
        try:
            follow_pointer(ctx.root, ref[1:])
        except LookupError as exc:
            return self.fail(
                ResolutionError(
                    ErrorKind.RESOLUTION_INCOMPLETE,
                    f"Cannot resolve $ref '{ref}': {exc}",
                    cause=exc,
                ),
                node,
            )
        self.linked.setdefault(ref, None)
        return dict(node)

    def _resolve_external(
        self, node: dict[str, Any], ref: str, ctx: _Context, seen: frozenset[str]
    ) -> Any:
        absolute = urljoin(ctx.url, ref) if ctx.url else ref
        url, fragment = urldefrag(absolute)
        identity = f"{url}#{fragment}"
        if identity in seen:
            self.circular.setdefault(ref, None)
            return node

        check_external_url(url, self.options.allowed_domains)
        try:
            document = self._load(url)
        except ResolutionError as exc:
            return self.fail(exc, node)

        try:
            target = follow_pointer(document, fragment)
        except LookupError as exc:
            return self.fail(
                ResolutionError(
                    ErrorKind.RESOLUTION_INCOMPLETE,
                    f"Cannot resolve $ref '{ref}': {exc}",
                    cause=exc,
                ),
                node,
            )
        resolved = self.resolve(target, _Context(document, url), seen | {identity})
        return _merge_siblings(resolved, node, lambda value: self.resolve(value, ctx, seen))

    def _load(self, url: str) -> Any:
        if url in self._documents:
            return self._documents[url]

        text = self.fetcher.fetch(url)
        path = urlsplit(url).path.lower()
        fmt = DocumentFormat.JSON if path.endswith(".json") else DocumentFormat.YAML
        try:
            document = parse_content(text, fmt)
        except ReadError as exc:
            raise ResolutionError(
                ErrorKind.FETCH_ERROR,
                f"Failed to parse external document {url}: {exc.message}",
                cause=exc,
            ) from exc
        self._documents[url] = document
        return document


def _merge_siblings(
    resolved: Any, node: dict[str, Any], resolve: Callable[[Any], Any]
) -> Any:
    """Overlay keys written next to ``$ref`` onto the resolved target."""
    siblings = {key: value for key, value in node.items() if key != "$ref"}
    if not siblings or not isinstance(resolved, dict):
        return resolved
    merged = dict(resolved)
    for key, value in siblings.items():
        merged[key] = resolve(value)
    return merged


def resolve_references(
    content: dict[str, Any],
    options: ResolutionOptions,
    fetcher: Optional[Fetcher] = None,
    source_path: str = "",
) -> ResolvedDocument:
    """Resolve the references in *content* according to *options*.

    Args:
        content: The validated document as plain data. It is not modified.
        options: Mode, leniency and network limits for this call.
        fetcher: Network capability for full mode. Defaults to an
            :class:`~httpapigen.parser.remote.HttpxFetcher` built from
            *options*; never used in bundle mode.
        source_path: File the document came from, attached to errors.

    Returns:
        A :class:`~httpapigen.models.ResolvedDocument`.

    Raises:
        ResolutionError: On the first failure in strict mode. Security gate
            failures are raised even in lenient mode.

    Example::

        resolved = resolve_references(doc, ResolutionOptions())
        resolved.linked_refs   # ('#/components/schemas/Pet', ...)
    """
    reference_paths = extract_reference_paths(content)

    if options.resolve_external and fetcher is None:
        fetcher = HttpxFetcher(
            timeout=options.timeout,
            max_redirects=options.max_redirects,
            allowed_domains=options.allowed_domains,
        )
    run = _Resolution(options, fetcher)

    try:
        if options.resolve_external:
            for ref in classify_references(reference_paths).external:
                check_external_url(urldefrag(ref)[0], options.allowed_domains)
        root = copy.deepcopy(content)
        resolved = run.resolve(root, _Context(root), frozenset())
    except ResolutionError as exc:
        raise exc.with_file(source_path) from exc.__cause__

    return ResolvedDocument(
        source_path=source_path,
        original=content,
        resolved=resolved,
        reference_paths=tuple(reference_paths),
        circular_refs=tuple(run.circular),
        linked_refs=tuple(run.linked),
        errors=tuple(run.errors),
    )


def validate_resolution(
    resolved: ResolvedDocument,
    allow_links: bool = True,
    allow_circular: bool = True,
) -> ResolvedDocument:
    """Re-walk ``resolved.resolved`` and fail on unexpected references.

    Args:
        resolved: Output of :func:`resolve_references`.
        allow_links: Accept component-schema links kept in bundle mode.
        allow_circular: Accept references left in place to break a cycle.

    Returns:
        *resolved* unchanged.

    Raises:
        ResolutionError: ``CIRCULAR_UNRESOLVED`` for a disallowed cycle,
            ``RESOLUTION_INCOMPLETE`` for any other residual reference.
    """
    remaining = extract_reference_paths(resolved.resolved)
    circular = [ref for ref in remaining if ref in resolved.circular_refs]
    residual = [
        ref
        for ref in remaining
        if ref not in resolved.circular_refs
        and not (allow_links and ref in resolved.linked_refs)
    ]

    if circular and not allow_circular:
        raise ResolutionError(
            ErrorKind.CIRCULAR_UNRESOLVED,
            f"Circular references could not be inlined: {', '.join(circular)}",
            file_path=resolved.source_path,
            details=circular,
        )
    if residual:
        raise ResolutionError(
            ErrorKind.RESOLUTION_INCOMPLETE,
            "Reference resolution incomplete. Remaining unresolved references: "
            + ", ".join(residual),
            file_path=resolved.source_path,
            details=residual,
        )
    return resolved
