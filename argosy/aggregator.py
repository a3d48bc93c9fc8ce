"""
Argosy option aggregation.

The tokenizer parses the whole command line against one flat option set before
the tree is walked, so every option declared anywhere in the tree must live in
that set without ambiguity. aggregate(root) builds it:

- walks the tree depth-first (children in declaration order, recursing into
  routes only),
- adds a normalized copy of each option with required=False (required options
  are enforced later, per active descriptor, by the resolver),
- before adding, looks up an existing option by short name and, separately,
  by long name; a match must agree on short name, long name, required flag,
  arity, type, optional-value flag and separator, otherwise OptionConflictError,
- appends option groups as declared.

Identical redeclarations (the same flag on a route and on one of its commands)
collapse into a single entry.
"""
import copy
import functools
from types import MappingProxyType

from .arguments import Option, OptionGroup
from .descriptors import Descriptor, walk
from .faults import FaultCode, OptionConflictError

# compared in this order; the first mismatch names the conflict
_FIELDS = (
    ("short", "short name"),
    ("long", "long name"),
    ("required", "required flag"),
    ("nargs", "number of arguments"),
    ("type", "argument type"),
    ("optional", "optional argument flag"),
    ("separator", "value separator"),
)


def _difference(new, existing, /):
    for field, label in _FIELDS:
        if getattr(new, field) != getattr(existing, field):
            return field, label
    return None


class OptionSet:
    """
    Flat, conflict-checked union of options and option groups.

    Lookup accepts a short or long name, with or without leading hyphens
    ("-o", "--opt", "o", "opt").
    """

    def __init__(self, options=(), groups=()):
        self._options = []
        self._names = {}
        self._groups = []
        for option in options:
            self._add(option)
        for group in groups:
            self._add_group(group)

    def __repr__(self):
        return f"option-set({", ".join(option.key for option in self._options)})"

    def __iter__(self):
        return iter(self._options)

    def __len__(self):
        return len(self._options)

    def __contains__(self, name):
        return self.find(name) is not None

    @property
    def options(self):
        return tuple(self._options)

    @property
    def groups(self):
        return tuple(self._groups)

    @property
    def names(self):
        return MappingProxyType(self._names)

    def find(self, name, /):
        """
        Return the option registered under `name`, or None.
        """
        if isinstance(name, Option):
            name = name.key
        if not isinstance(name, str):
            raise TypeError("find() argument must be an option name")
        if name.startswith("-"):
            return self._names.get(name)
        return self._names.get(("-" if len(name) == 1 else "--") + name)

    def group_of(self, option, /):
        """
        Return the first group holding `option` (matched by key), or None.
        """
        for group in self._groups:
            if option.key in group.keys:
                return group
        return None

    def _add(self, option, /):
        if not isinstance(option, Option):
            raise TypeError("option sets only hold options")
        normalized = copy.replace(option, required=False) if option.required else option
        for name in normalized.names:
            if (existing := self._names.get(name)) is None:
                continue
            if difference := _difference(normalized, existing):
                field, label = difference
                raise OptionConflictError(
                    f"there is already an existing matching option with different {label}.\n"
                    f"new: {normalized!r}\n"
                    f"existing: {existing!r}",
                    code=FaultCode.OPTION_CONFLICT,
                    field=field,
                    new=normalized,
                    existing=existing,
                )
            # identical shape: keep the first declaration
            return existing
        self._options.append(normalized)
        for name in normalized.names:
            self._names[name] = normalized
        return normalized

    def _add_group(self, group, /):
        if not isinstance(group, OptionGroup):
            raise TypeError("option sets only hold option groups")
        self._groups.append(group)

    def extend(self, *options):
        """
        Return a new set with `options` merged in, under the same conflict rules.
        """
        return OptionSet((*self._options, *options), self._groups)


@functools.cache
def aggregate(root, /):
    """
    Flatten every option reachable from `root` into one OptionSet.

    The result depends only on the (immutable) tree and is cached per root.

    Raises
    - TypeError: root is not a descriptor.
    - OptionConflictError: two options share a name but not a shape.
    """
    if not isinstance(root, Descriptor):
        raise TypeError("aggregate() argument must be a route or a command")
    options = OptionSet()
    for _, descriptor in walk(root):
        for option in descriptor.options:
            options._add(option)
        for group in descriptor.groups:
            options._add_group(group)
    return options


__all__ = (
    "OptionSet",
    "aggregate",
)
