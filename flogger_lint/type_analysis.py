"""
flogger_lint/type_analysis.py
═════════════════════════════

Static type oracle for Java compilation units parsed by
:mod:`flogger_lint.java_frontend`.

The rule only needs three questions answered about an expression:

  * what is its static type?                 — ``type_of``
  * is that type a subtype of some class?    — ``is_subtype``
  * is it the null type?                     — ``is_null_type``

There is no compiler behind us, so the oracle builds its own symbol
index: a :class:`ClassHierarchy` seeded with the JDK throwable hierarchy
and the Flogger API surface, extended with every class, interface, enum
and record declared in the unit being analysed.

Three layers:

  1. **Type representation** — ``JavaType`` terms and the tri-state
     ``Subtyping`` answer (``UNKNOWN`` when an ancestor is missing from
     the index; the symbol table is incomplete, not the program wrong).

  2. **ClassHierarchy** — FQN → supertypes / method return table, with
     a parent link so the read-only builtins are shared between units.

  3. **JavaTypeOracle** — name resolution (package, imports, nested
     classes, type parameters, ``java.lang``) and expression typing over
     the tree-sitter CST.

Resolution failures are values (``ERROR_TYPE`` / ``Subtyping.UNKNOWN``),
never exceptions, so callers can degrade locally.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field, replace
from enum import Enum, auto
from typing import (
    Callable,
    Dict,
    Iterable,
    List,
    Optional,
    Sequence,
    Tuple,
)

from tree_sitter import Node

from flogger_lint.java_frontend import (
    CallSite,
    CompilationUnit,
    is_comment,
    iter_parents,
    iter_preorder,
    node_key,
    strip_parens,
)

logger = logging.getLogger(__name__)


# ═════════════════════════════════════════════════════════════════════════
#  PART 1 — TYPE REPRESENTATION
# ═════════════════════════════════════════════════════════════════════════

OBJECT = "java.lang.Object"
STRING = "java.lang.String"
THROWABLE = "java.lang.Throwable"
CLASS = "java.lang.Class"

PRIMITIVE_NAMES = frozenset({
    "boolean", "byte", "short", "char", "int", "long", "float", "double",
})


class TypeKind(Enum):
    """Coarse classification of a :class:`JavaType`."""
    CLASS = auto()      # class / interface / enum / record
    PRIMITIVE = auto()
    ARRAY = auto()
    NULL = auto()       # the type of the ``null`` literal
    VOID = auto()
    ERROR = auto()      # unresolved; the javac "error type"


@dataclass(frozen=True)
class JavaType:
    """
    A static Java type.

    ``name`` is the fully qualified name for CLASS types (nested classes as
    ``pkg.Outer.Inner``) and the keyword for primitives.  ``is_type_name``
    marks an expression that *names* a class (``FluentLogger`` in
    ``FluentLogger.forEnclosingClass()``) rather than producing an instance.
    """
    kind: TypeKind
    name: str = ""
    element: Optional[JavaType] = None
    type_args: Tuple[JavaType, ...] = ()
    is_type_name: bool = False

    @classmethod
    def of_class(cls, fqn: str, type_args: Sequence[JavaType] = ()) -> JavaType:
        return cls(TypeKind.CLASS, fqn, type_args=tuple(type_args))

    @classmethod
    def primitive(cls, name: str) -> JavaType:
        return cls(TypeKind.PRIMITIVE, name)

    @classmethod
    def array_of(cls, element: JavaType, dims: int = 1) -> JavaType:
        t = element
        for _ in range(max(dims, 1)):
            t = cls(TypeKind.ARRAY, "", element=t)
        return t

    def as_type_name(self) -> JavaType:
        return replace(self, is_type_name=True)

    def as_instance(self) -> JavaType:
        return replace(self, is_type_name=False) if self.is_type_name else self

    @property
    def is_error(self) -> bool:
        return self.kind is TypeKind.ERROR

    @property
    def is_null(self) -> bool:
        return self.kind is TypeKind.NULL

    @property
    def is_reference(self) -> bool:
        return self.kind in (TypeKind.CLASS, TypeKind.ARRAY, TypeKind.NULL)

    @property
    def simple_name(self) -> str:
        return self.name.rsplit(".", 1)[-1]

    def __str__(self) -> str:
        if self.kind is TypeKind.ARRAY:
            return f"{self.element}[]"
        if self.kind is TypeKind.CLASS and self.type_args:
            args = ", ".join(str(a) for a in self.type_args)
            return f"{self.name}<{args}>"
        return self.name


NULL_TYPE = JavaType(TypeKind.NULL, "null")
ERROR_TYPE = JavaType(TypeKind.ERROR, "<error>")
VOID_TYPE = JavaType(TypeKind.VOID, "void")


class Subtyping(Enum):
    """Answer to "is S a subtype of T?" over a possibly incomplete index."""
    YES = "yes"
    NO = "no"
    UNKNOWN = "unknown"


# ═════════════════════════════════════════════════════════════════════════
#  PART 2 — CLASS HIERARCHY
# ═════════════════════════════════════════════════════════════════════════

# Method-table marker: the method returns the receiver's own type
# (Flogger's ``API extends LoggingApi<API>`` self type).
SELF = "<self>"


@dataclass
class ClassInfo:
    """Supertypes and known method return types of one class."""
    fqn: str
    supertypes: Tuple[str, ...] = ()
    is_interface: bool = False
    methods: Dict[str, str] = field(default_factory=dict)


_FLOGGER = "com.google.common.flogger"
LOGGING_API = f"{_FLOGGER}.LoggingApi"

_LOGGING_API_METHODS: Dict[str, str] = {
    "withCause": SELF,
    "withStackTrace": SELF,
    "every": SELF,
    "onAverageEvery": SELF,
    "atMostEvery": SELF,
    "per": SELF,
    "with": SELF,
    "withInjectedLogSite": SELF,
    "log": "void",
    "logVarargs": "void",
    "isEnabled": "boolean",
}

_LEVEL_SELECTORS = (
    "atSevere", "atWarning", "atInfo", "atConfig",
    "atFine", "atFiner", "atFinest", "at",
)


def _logger_methods(api: str, logger_cls: str) -> Dict[str, str]:
    methods = {name: api for name in _LEVEL_SELECTORS}
    methods["forEnclosingClass"] = logger_cls
    return methods


_THROWABLE_METHODS: Dict[str, str] = {
    "getCause": THROWABLE,
    "fillInStackTrace": THROWABLE,
    "initCause": THROWABLE,
    "getMessage": STRING,
    "getLocalizedMessage": STRING,
    "toString": STRING,
}

# (fqn, supertypes, is_interface, methods)
_BUILTIN_TYPES: Tuple[Tuple[str, Tuple[str, ...], bool, Dict[str, str]], ...] = (
    (OBJECT, (), False,
     {"toString": STRING, "hashCode": "int", "equals": "boolean", "getClass": CLASS}),
    ("java.io.Serializable", (), True, {}),
    ("java.lang.CharSequence", (), True, {}),
    ("java.lang.Comparable", (), True, {}),
    ("java.lang.Cloneable", (), True, {}),
    (STRING, (OBJECT, "java.io.Serializable", "java.lang.CharSequence",
              "java.lang.Comparable"), False,
     {"format": STRING, "valueOf": STRING, "trim": STRING, "isEmpty": "boolean"}),
    (CLASS, (OBJECT,), False, {"getName": STRING, "getSimpleName": STRING}),
    ("java.lang.Enum", (OBJECT, "java.lang.Comparable", "java.io.Serializable"),
     False, {"name": STRING}),
    ("java.lang.Record", (OBJECT,), False, {}),
    ("java.util.logging.Level", (OBJECT,), False, {}),
    # ── java.lang throwables ────────────────────────────────────────
    (THROWABLE, (OBJECT, "java.io.Serializable"), False, _THROWABLE_METHODS),
    ("java.lang.Exception", (THROWABLE,), False, {}),
    ("java.lang.Error", (THROWABLE,), False, {}),
    ("java.lang.RuntimeException", ("java.lang.Exception",), False, {}),
    ("java.lang.IllegalArgumentException", ("java.lang.RuntimeException",), False, {}),
    ("java.lang.NumberFormatException", ("java.lang.IllegalArgumentException",), False, {}),
    ("java.lang.IllegalStateException", ("java.lang.RuntimeException",), False, {}),
    ("java.lang.NullPointerException", ("java.lang.RuntimeException",), False, {}),
    ("java.lang.UnsupportedOperationException", ("java.lang.RuntimeException",), False, {}),
    ("java.lang.IndexOutOfBoundsException", ("java.lang.RuntimeException",), False, {}),
    ("java.lang.ArrayIndexOutOfBoundsException",
     ("java.lang.IndexOutOfBoundsException",), False, {}),
    ("java.lang.StringIndexOutOfBoundsException",
     ("java.lang.IndexOutOfBoundsException",), False, {}),
    ("java.lang.ClassCastException", ("java.lang.RuntimeException",), False, {}),
    ("java.lang.ArithmeticException", ("java.lang.RuntimeException",), False, {}),
    ("java.lang.SecurityException", ("java.lang.RuntimeException",), False, {}),
    ("java.lang.InterruptedException", ("java.lang.Exception",), False, {}),
    ("java.lang.CloneNotSupportedException", ("java.lang.Exception",), False, {}),
    ("java.lang.ReflectiveOperationException", ("java.lang.Exception",), False, {}),
    ("java.lang.ClassNotFoundException",
     ("java.lang.ReflectiveOperationException",), False, {}),
    ("java.lang.NoSuchMethodException",
     ("java.lang.ReflectiveOperationException",), False, {}),
    ("java.lang.NoSuchFieldException",
     ("java.lang.ReflectiveOperationException",), False, {}),
    ("java.lang.InstantiationException",
     ("java.lang.ReflectiveOperationException",), False, {}),
    ("java.lang.IllegalAccessException",
     ("java.lang.ReflectiveOperationException",), False, {}),
    ("java.lang.reflect.InvocationTargetException",
     ("java.lang.ReflectiveOperationException",), False,
     {"getTargetException": THROWABLE}),
    ("java.lang.reflect.UndeclaredThrowableException",
     ("java.lang.RuntimeException",), False, {}),
    ("java.lang.AssertionError", ("java.lang.Error",), False, {}),
    ("java.lang.LinkageError", ("java.lang.Error",), False, {}),
    ("java.lang.NoClassDefFoundError", ("java.lang.LinkageError",), False, {}),
    ("java.lang.ExceptionInInitializerError", ("java.lang.LinkageError",), False, {}),
    ("java.lang.VirtualMachineError", ("java.lang.Error",), False, {}),
    ("java.lang.OutOfMemoryError", ("java.lang.VirtualMachineError",), False, {}),
    ("java.lang.StackOverflowError", ("java.lang.VirtualMachineError",), False, {}),
    # ── java.io / java.net / java.nio ───────────────────────────────
    ("java.io.IOException", ("java.lang.Exception",), False, {}),
    ("java.io.FileNotFoundException", ("java.io.IOException",), False, {}),
    ("java.io.EOFException", ("java.io.IOException",), False, {}),
    ("java.io.InterruptedIOException", ("java.io.IOException",), False, {}),
    ("java.io.UnsupportedEncodingException", ("java.io.IOException",), False, {}),
    ("java.io.UncheckedIOException", ("java.lang.RuntimeException",), False,
     {"getCause": "java.io.IOException"}),
    ("java.net.MalformedURLException", ("java.io.IOException",), False, {}),
    ("java.net.SocketException", ("java.io.IOException",), False, {}),
    ("java.net.UnknownHostException", ("java.io.IOException",), False, {}),
    ("java.net.SocketTimeoutException", ("java.io.InterruptedIOException",), False, {}),
    ("java.net.URISyntaxException", ("java.lang.Exception",), False, {}),
    ("java.nio.file.FileSystemException", ("java.io.IOException",), False, {}),
    ("java.nio.file.NoSuchFileException", ("java.nio.file.FileSystemException",), False, {}),
    # ── java.util / java.util.concurrent / java.sql ─────────────────
    ("java.util.NoSuchElementException", ("java.lang.RuntimeException",), False, {}),
    ("java.util.ConcurrentModificationException",
     ("java.lang.RuntimeException",), False, {}),
    ("java.util.concurrent.ExecutionException", ("java.lang.Exception",), False, {}),
    ("java.util.concurrent.TimeoutException", ("java.lang.Exception",), False, {}),
    ("java.util.concurrent.CancellationException",
     ("java.lang.IllegalStateException",), False, {}),
    ("java.util.concurrent.CompletionException",
     ("java.lang.RuntimeException",), False, {}),
    ("java.util.concurrent.RejectedExecutionException",
     ("java.lang.RuntimeException",), False, {}),
    ("java.sql.SQLException", ("java.lang.Exception",), False, {}),
    # ── Flogger ─────────────────────────────────────────────────────
    (LOGGING_API, (), True, _LOGGING_API_METHODS),
    (f"{LOGGING_API}.NoOp", (OBJECT, LOGGING_API), False, {}),
    (f"{_FLOGGER}.AbstractLogger", (OBJECT,), False, {}),
    (f"{_FLOGGER}.FluentLogger", (f"{_FLOGGER}.AbstractLogger",), False,
     _logger_methods(f"{_FLOGGER}.FluentLogger.Api", f"{_FLOGGER}.FluentLogger")),
    (f"{_FLOGGER}.FluentLogger.Api", (LOGGING_API,), True, {}),
    (f"{_FLOGGER}.GoogleLogger", (f"{_FLOGGER}.AbstractLogger",), False,
     _logger_methods(f"{_FLOGGER}.GoogleLogger.Api", f"{_FLOGGER}.GoogleLogger")),
    (f"{_FLOGGER}.GoogleLogger.Api", (LOGGING_API,), True, {}),
)


class ClassHierarchy:
    """
    Index of class FQN → :class:`ClassInfo`.

    A hierarchy may have a *parent*; lookups fall through to it, while
    declarations always land locally.  Units get a child of the shared
    builtin hierarchy, so analysing one file never mutates another's view.

    Usage
    -----
    >>> h = ClassHierarchy.with_builtins().child()
    >>> h.declare("com.acme.BadThing", ("java.lang.RuntimeException",))
    >>> h.is_subtype("com.acme.BadThing", "java.lang.Throwable")
    <Subtyping.YES: 'yes'>
    """

    def __init__(self, parent: Optional[ClassHierarchy] = None) -> None:
        self._parent = parent
        self._classes: Dict[str, ClassInfo] = {}

    @classmethod
    def with_builtins(cls) -> ClassHierarchy:
        """A hierarchy holding the JDK and Flogger types the rule needs."""
        h = cls()
        for fqn, supers, iface, methods in _BUILTIN_TYPES:
            h.declare(fqn, supers, is_interface=iface, methods=dict(methods))
        return h

    def child(self) -> ClassHierarchy:
        return ClassHierarchy(parent=self)

    def declare(
        self,
        fqn: str,
        supertypes: Iterable[str] = (),
        is_interface: bool = False,
        methods: Optional[Dict[str, str]] = None,
    ) -> ClassInfo:
        info = ClassInfo(
            fqn=fqn,
            supertypes=tuple(supertypes),
            is_interface=is_interface,
            methods=methods or {},
        )
        self._classes[fqn] = info
        return info

    def get(self, fqn: str) -> Optional[ClassInfo]:
        info = self._classes.get(fqn)
        if info is None and self._parent is not None:
            return self._parent.get(fqn)
        return info

    def knows(self, fqn: str) -> bool:
        return self.get(fqn) is not None

    def __contains__(self, fqn: object) -> bool:
        return isinstance(fqn, str) and self.knows(fqn)

    def supertypes(self, fqn: str) -> Tuple[str, ...]:
        info = self.get(fqn)
        return info.supertypes if info is not None else ()

    def ancestors(self, fqn: str) -> List[str]:
        """*fqn* and every known supertype, breadth-first, without repeats."""
        order: List[str] = []
        seen = set()
        queue = deque([fqn])
        while queue:
            cur = queue.popleft()
            if cur in seen:
                continue
            seen.add(cur)
            order.append(cur)
            queue.extend(self.supertypes(cur))
        return order

    def is_subtype(self, sub: str, sup: str) -> Subtyping:
        """
        Reflexive, transitive subtype test over the index.

        ``UNKNOWN`` when *sup* was not reached and some ancestor of *sub*
        is missing from the index.
        """
        if sub == sup or sup == OBJECT:
            return Subtyping.YES
        incomplete = False
        seen = set()
        queue = deque([sub])
        while queue:
            cur = queue.popleft()
            if cur in seen:
                continue
            seen.add(cur)
            if cur == sup:
                return Subtyping.YES
            info = self.get(cur)
            if info is None:
                incomplete = True
                continue
            queue.extend(info.supertypes)
        return Subtyping.UNKNOWN if incomplete else Subtyping.NO

    def lookup_method(self, fqn: str, name: str) -> Optional[str]:
        """Return-type entry for *name*, searching *fqn* and its ancestors."""
        for anc in self.ancestors(fqn):
            info = self.get(anc)
            if info is not None and name in info.methods:
                return info.methods[name]
        return None

    def __len__(self) -> int:
        own = len(self._classes)
        return own + (len(self._parent) if self._parent is not None else 0)

    def __repr__(self) -> str:
        return f"<ClassHierarchy {len(self._classes)} local, parent={self._parent is not None}>"


# ═════════════════════════════════════════════════════════════════════════
#  PART 3 — DECLARATION INDEX & NAME RESOLUTION
# ═════════════════════════════════════════════════════════════════════════

CLASS_LIKE = frozenset({
    "class_declaration",
    "interface_declaration",
    "enum_declaration",
    "record_declaration",
    "annotation_type_declaration",
})

# switch labels and record components that bind a typed variable
_BINDING_PATTERNS = frozenset({"type_pattern", "record_pattern_component"})

_INTEGER_LITERALS = frozenset({
    "decimal_integer_literal",
    "hex_integer_literal",
    "octal_integer_literal",
    "binary_integer_literal",
})

_FLOAT_LITERALS = frozenset({
    "decimal_floating_point_literal",
    "hex_floating_point_literal",
})

_COMPARISON_OPS = frozenset({"==", "!=", "<", ">", "<=", ">=", "&&", "||"})


@dataclass
class _DeclaredClass:
    fqn: str
    node: Node
    fields: Dict[str, Tuple[Node, Node]] = field(default_factory=dict)
    methods: Dict[str, List[Node]] = field(default_factory=dict)


def _named(node: Optional[Node]) -> List[Node]:
    if node is None:
        return []
    return [c for c in node.named_children if not is_comment(c)]

class TypeResolver:
    """
    Maps type names written in a unit to fully qualified names.

    Lookup order for a simple name: the enclosing classes and their member
    types (innermost first), top-level types of the unit, single-type
    imports, ``java.lang``, then on-demand imports the hierarchy knows.
    Dotted names resolve their first segment and append the rest.
    """

    def __init__(
        self,
        unit: CompilationUnit,
        hierarchy: ClassHierarchy,
        declared: Dict[str, _DeclaredClass],
        class_by_node: Dict[Tuple[int, int, str], str],
    ) -> None:
        self.unit = unit
        self.hierarchy = hierarchy
        self._declared = declared
        self._class_by_node = class_by_node

    def resolve(self, name: str, context: Optional[Node] = None) -> Optional[str]:
        """
        Fully qualified name for a (possibly dotted) type *name* as seen
        from *context*, or ``None`` when it cannot be resolved.
        """
        name = name.split("<", 1)[0].strip()
        if not name:
            return None
        if "." in name:
            head, rest = name.split(".", 1)
            head_fqn = self.resolve_simple(head, context)
            if head_fqn is not None:
                return f"{head_fqn}.{rest}"
            if self.hierarchy.knows(name) or name in self._declared:
                return name
            return None
        return self.resolve_simple(name, context)

    def resolve_simple(self, name: str, context: Optional[Node] = None) -> Optional[str]:
        unit = self.unit
        for anc in iter_parents(context):
            if anc.type not in CLASS_LIKE:
                continue
            outer = self._class_by_node.get(node_key(anc))
            if outer is None:
                continue
            if unit.text_of(anc.child_by_field_name("name")) == name:
                return outer
            candidate = f"{outer}.{name}"
            if candidate in self._declared:
                return candidate
            for sup in self.hierarchy.ancestors(outer)[1:]:
                inherited = f"{sup}.{name}"
                if inherited in self._declared or self.hierarchy.knows(inherited):
                    return inherited
        top = f"{unit.package_name}.{name}" if unit.package_name else name
        if top in self._declared:
            return top
        if name in unit.imports:
            return unit.imports[name]
        if self.hierarchy.knows(f"java.lang.{name}"):
            return f"java.lang.{name}"
        for pkg in unit.wildcard_imports:
            candidate = f"{pkg}.{name}"
            if self.hierarchy.knows(candidate):
                return candidate
        return None


# ═════════════════════════════════════════════════════════════════════════
#  PART 4 — THE ORACLE
# ═════════════════════════════════════════════════════════════════════════

class JavaTypeOracle:
    """
    Type oracle for one :class:`CompilationUnit`.

    Construction indexes the unit's declarations into a child of
    *hierarchy* (or of a fresh builtin hierarchy).  Expression types are
    memoised for the lifetime of the oracle; create one oracle per unit.

    Parameters
    ----------
    unit      : the parsed compilation unit
    hierarchy : shared parent hierarchy (defaults to the builtins)
    """

    def __init__(
        self,
        unit: CompilationUnit,
        hierarchy: Optional[ClassHierarchy] = None,
    ) -> None:
        self.unit = unit
        self.hierarchy = (hierarchy or ClassHierarchy.with_builtins()).child()
        self._classes: Dict[str, _DeclaredClass] = {}
        self._class_by_node: Dict[Tuple[int, int, str], str] = {}
        self.resolver = TypeResolver(unit, self.hierarchy, self._classes, self._class_by_node)
        self._memo: Dict[Tuple[int, int, str], JavaType] = {}
        self._index()

    # ── public oracle interface ──────────────────────────────────────

    def type_of(self, node: Optional[Node]) -> JavaType:
        """Static type of expression *node*; ``ERROR_TYPE`` when unknown."""
        if node is None:
            return ERROR_TYPE
        key = node_key(node)
        cached = self._memo.get(key)
        if cached is not None:
            return cached
        # Placeholder breaks cycles such as ``var x = x``.
        self._memo[key] = ERROR_TYPE
        result = self._compute(node)
        self._memo[key] = result
        return result

    def is_subtype(self, t: JavaType, root: str) -> Subtyping:
        if t.kind is TypeKind.NULL:
            return Subtyping.YES
        if t.kind is TypeKind.ERROR:
            return Subtyping.UNKNOWN
        if t.kind is TypeKind.ARRAY:
            if root in (OBJECT, "java.lang.Cloneable", "java.io.Serializable"):
                return Subtyping.YES
            return Subtyping.NO
        if t.kind is not TypeKind.CLASS:
            return Subtyping.NO
        return self.hierarchy.is_subtype(t.name, root)

    def is_null_type(self, t: JavaType) -> bool:
        return t.kind is TypeKind.NULL

    def receiver_type(self, call: CallSite) -> JavaType:
        """
        Type of the object a call is dispatched on: the explicit receiver,
        or the enclosing class for an unqualified call.
        """
        receiver = call.receiver()
        if receiver is not None:
            return self.type_of(receiver)
        return self.enclosing_class_type(call.node)

    def enclosing_class_type(self, node: Node) -> JavaType:
        for anc in iter_parents(node):
            if anc.type in CLASS_LIKE:
                fqn = self._class_by_node.get(node_key(anc))
                if fqn is not None:
                    return JavaType.of_class(fqn)
            if anc.type == "class_body" and anc.parent is not None \
                    and anc.parent.type == "object_creation_expression":
                return self._type_from_node(anc.parent.child_by_field_name("type"))
        return ERROR_TYPE

    def declared_classes(self) -> List[str]:
        return sorted(self._classes)

    # ── indexing ─────────────────────────────────────────────────────

    def _index(self) -> None:
        unit = self.unit
        decls: List[Tuple[Node, str]] = []
        for node in iter_preorder(unit.root):
            if node.type in CLASS_LIKE:
                fqn = self._qualified_name(node)
                if fqn is None:
                    continue
                self._class_by_node[node_key(node)] = fqn
                self._classes[fqn] = _DeclaredClass(fqn, node)
                decls.append((node, fqn))

        # Supertypes need every declared name in place first.
        for node, fqn in decls:
            supers = self._declared_supertypes(node)
            self.hierarchy.declare(
                fqn, supers,
                is_interface=node.type in ("interface_declaration",
                                           "annotation_type_declaration"),
            )
            self._index_members(node, self._classes[fqn])

        # Anything caught or declared thrown is a Throwable even when the
        # library defining it is not on our index.
        for node in iter_preorder(unit.root):
            if node.type in ("catch_type", "throws"):
                for type_node in _named(node):
                    t = self._type_from_node(type_node)
                    if t.kind is TypeKind.CLASS and not self.hierarchy.knows(t.name):
                        self.hierarchy.declare(t.name, (THROWABLE,))

        logger.debug(
            "%s: indexed %d declared type(s)", unit.path, len(self._classes)
        )

    def _qualified_name(self, decl: Node) -> Optional[str]:
        name_node = decl.child_by_field_name("name")
        if name_node is None:
            return None
        parts = [self.unit.text_of(name_node)]
        for anc in iter_parents(decl):
            if anc.type in CLASS_LIKE:
                outer = anc.child_by_field_name("name")
                if outer is None:
                    return None
                parts.append(self.unit.text_of(outer))
            elif anc.type in ("method_declaration", "constructor_declaration",
                              "object_creation_expression", "lambda_expression"):
                # Local and anonymous classes are not addressable by FQN.
                return None
        if self.unit.package_name:
            parts.append(self.unit.package_name)
        return ".".join(reversed(parts))

    def _declared_supertypes(self, decl: Node) -> Tuple[str, ...]:
        supers: List[str] = []
        type_nodes: List[Node] = []
        for child in decl.children:
            if child.type == "superclass":
                type_nodes.extend(_named(child))
            elif child.type in ("super_interfaces", "extends_interfaces"):
                for tl in _named(child):
                    type_nodes.extend(_named(tl) if tl.type == "type_list" else [tl])
        for tn in type_nodes:
            t = self._type_from_node(tn)
            if t.kind is TypeKind.CLASS:
                supers.append(t.name)
        if decl.type == "enum_declaration":
            supers.insert(0, "java.lang.Enum")
        elif decl.type == "record_declaration":
            supers.insert(0, "java.lang.Record")
        elif decl.type == "class_declaration" and not any(
            c.type == "superclass" for c in decl.children
        ):
            supers.insert(0, OBJECT)
        return tuple(supers)

    def _index_members(self, decl: Node, info: _DeclaredClass) -> None:
        body = decl.child_by_field_name("body")
        for member in _named(body):
            if member.type in ("field_declaration", "constant_declaration"):
                type_node = member.child_by_field_name("type")
                for d in member.children_by_field_name("declarator"):
                    name = self.unit.text_of(d.child_by_field_name("name"))
                    if type_node is not None and name:
                        info.fields[name] = (type_node, d)
            elif member.type == "method_declaration":
                name = self.unit.text_of(member.child_by_field_name("name"))
                info.methods.setdefault(name, []).append(member)
            elif member.type == "enum_body_declarations":
                self._index_members_of_body(member, info)
        if decl.type == "enum_declaration":
            for const in _named(body):
                if const.type == "enum_constant":
                    name = self.unit.text_of(const.child_by_field_name("name"))
                    info.fields[name] = (decl, const)
        if decl.type == "record_declaration":
            params = decl.child_by_field_name("parameters")
            for p in _named(params):
                if p.type == "formal_parameter":
                    name = self.unit.text_of(p.child_by_field_name("name"))
                    info.fields[name] = (p.child_by_field_name("type"), p)

    def _index_members_of_body(self, body: Node, info: _DeclaredClass) -> None:
        for member in _named(body):
            if member.type == "field_declaration":
                type_node = member.child_by_field_name("type")
                for d in member.children_by_field_name("declarator"):
                    name = self.unit.text_of(d.child_by_field_name("name"))
                    if type_node is not None and name:
                        info.fields[name] = (type_node, d)
            elif member.type == "method_declaration":
                name = self.unit.text_of(member.child_by_field_name("name"))
                info.methods.setdefault(name, []).append(member)

    def _type_parameter_bound(self, name: str, context: Node) -> Optional[JavaType]:
        """Erasure of type variable *name* if one is in scope at *context*."""
        for anc in iter_parents(context):
            params = anc.child_by_field_name("type_parameters")
            if params is None:
                continue
            for tp in _named(params):
                if tp.type != "type_parameter":
                    continue
                parts = _named(tp)
                ident = next((p for p in parts if p.type in ("identifier", "type_identifier")), None)
                if ident is None or self.unit.text_of(ident) != name:
                    continue
                bound = next((p for p in parts if p.type == "type_bound"), None)
                bound_types = _named(bound)
                if bound_types:
                    return self._type_from_node(bound_types[0])
                return JavaType.of_class(OBJECT)
        return None

    def _type_from_node(self, node: Optional[Node]) -> JavaType:
        """Translate a type syntax node into a :class:`JavaType`."""
        if node is None:
            return ERROR_TYPE
        t = node.type
        text = self.unit.text_of(node)
        if t in ("integral_type", "floating_point_type", "boolean_type"):
            return JavaType.primitive(text)
        if t == "void_type":
            return VOID_TYPE
        if t == "annotated_type":
            inner = _named(node)
            return self._type_from_node(inner[-1]) if inner else ERROR_TYPE
        if t == "array_type":
            element = self._type_from_node(node.child_by_field_name("element"))
            dims = self.unit.text_of(node.child_by_field_name("dimensions")).count("[")
            return JavaType.array_of(element, dims)
        if t == "generic_type":
            parts = _named(node)
            base = next((p for p in parts if p.type != "type_arguments"), None)
            base_type = self._type_from_node(base)
            args_node = next((p for p in parts if p.type == "type_arguments"), None)
            args = tuple(
                self._type_from_node(a) if a.type != "wildcard" else JavaType.of_class(OBJECT)
                for a in _named(args_node)
            )
            if base_type.kind is TypeKind.CLASS:
                return JavaType.of_class(base_type.name, args)
            return base_type
        if t == "type_identifier":
            bound = self._type_parameter_bound(text, node)
            if bound is not None:
                return bound
            fqn = self.resolver.resolve_simple(text, node)
            return JavaType.of_class(fqn if fqn is not None else text)
        if t == "scoped_type_identifier":
            plain = "".join(
                self.unit.text_of(c) for c in node.children
                if c.type in ("type_identifier", "scoped_type_identifier", ".")
            )
            fqn = self.resolver.resolve(plain, node)
            return JavaType.of_class(fqn if fqn is not None else plain)
        return ERROR_TYPE

    # ── variables ────────────────────────────────────────────────────

    def _declared_type(self, type_node: Optional[Node], declarator: Node) -> JavaType:
        if type_node is None:
            return ERROR_TYPE
        if type_node.type == "type_identifier" and self.unit.text_of(type_node) == "var":
            return self.type_of(declarator.child_by_field_name("value"))
        t = self._type_from_node(type_node)
        dims = declarator.child_by_field_name("dimensions")
        if dims is not None:
            t = JavaType.array_of(t, self.unit.text_of(dims).count("["))
        return t

    def _declarator_named(self, decl: Node, name: str) -> Optional[Node]:
        for d in decl.children_by_field_name("declarator"):
            if self.unit.text_of(d.child_by_field_name("name")) == name:
                return d
        return None

    def _catch_param_type(self, catch_type: Node) -> JavaType:
        alternatives = [self._type_from_node(n) for n in _named(catch_type)]
        if len(alternatives) == 1:
            return alternatives[0]
        return self._least_upper_bound(alternatives, default=THROWABLE)

    def _least_upper_bound(self, types: Sequence[JavaType], default: str) -> JavaType:
        classes = [t for t in types if t.kind is TypeKind.CLASS]
        if not classes or len(classes) != len(types):
            return JavaType.of_class(default)
        for candidate in self.hierarchy.ancestors(classes[0].name):
            if all(
                self.hierarchy.is_subtype(t.name, candidate) is Subtyping.YES
                for t in classes[1:]
            ):
                return JavaType.of_class(candidate)
        return JavaType.of_class(default)

    def _parameter_type(self, params: Optional[Node], name: str) -> Optional[JavaType]:
        for p in _named(params):
            if p.type == "formal_parameter":
                if self.unit.text_of(p.child_by_field_name("name")) == name:
                    return self._declared_type(p.child_by_field_name("type"), p)
            elif p.type == "spread_parameter":
                parts = _named(p)
                decl = next((c for c in parts if c.type == "variable_declarator"), None)
                type_node = next(
                    (c for c in parts if c.type not in ("modifiers", "variable_declarator")),
                    None,
                )
                if decl is not None and self.unit.text_of(decl.child_by_field_name("name")) == name:
                    return JavaType.array_of(self._type_from_node(type_node))
            elif p.type == "identifier" and self.unit.text_of(p) == name:
                # inferred lambda parameter
                return ERROR_TYPE
        return None

    def lookup_variable(self, name: str, use: Node) -> Optional[JavaType]:
        """
        Type of the variable *name* visible at *use*, or ``None`` when no
        declaration is in scope.  Walks outward through blocks, loops,
        catch clauses, resources, parameters, pattern bindings and class
        fields.
        """
        for anc in iter_parents(use):
            t = anc.type
            if t in ("block", "constructor_body", "switch_block_statement_group",
                     "program"):
                found: Optional[JavaType] = None
                for stmt in _named(anc):
                    if stmt.start_byte >= use.start_byte:
                        break
                    if stmt.type == "local_variable_declaration":
                        d = self._declarator_named(stmt, name)
                        if d is not None:
                            found = self._declared_type(stmt.child_by_field_name("type"), d)
                if found is not None:
                    return found
            elif t == "for_statement":
                for init in anc.children_by_field_name("init"):
                    if init.type == "local_variable_declaration":
                        d = self._declarator_named(init, name)
                        if d is not None:
                            return self._declared_type(init.child_by_field_name("type"), d)
            elif t == "enhanced_for_statement":
                if self.unit.text_of(anc.child_by_field_name("name")) == name:
                    type_node = anc.child_by_field_name("type")
                    if type_node is not None and self.unit.text_of(type_node) == "var":
                        iterable = self.type_of(anc.child_by_field_name("value"))
                        if iterable.kind is TypeKind.ARRAY and iterable.element is not None:
                            return iterable.element
                        if iterable.type_args:
                            return iterable.type_args[0]
                        return ERROR_TYPE
                    return self._type_from_node(type_node)
            elif t == "catch_clause":
                param = next((c for c in _named(anc) if c.type == "catch_formal_parameter"), None)
                if param is not None and self.unit.text_of(param.child_by_field_name("name")) == name:
                    catch_type = next((c for c in _named(param) if c.type == "catch_type"), None)
                    return self._catch_param_type(catch_type) if catch_type is not None \
                        else JavaType.of_class(THROWABLE)
            elif t == "try_with_resources_statement":
                resources = anc.child_by_field_name("resources")
                for res in _named(resources):
                    if res.type == "resource" and \
                            self.unit.text_of(res.child_by_field_name("name")) == name:
                        return self._declared_type(res.child_by_field_name("type"), res)
            elif t in ("method_declaration", "constructor_declaration", "lambda_expression"):
                params = anc.child_by_field_name("parameters")
                if params is not None and params.type == "identifier":
                    if self.unit.text_of(params) == name:
                        return ERROR_TYPE
                else:
                    found = self._parameter_type(params, name)
                    if found is not None:
                        return found
                found = self._pattern_binding(name, use, anc)
                if found is not None:
                    return found
            elif t in CLASS_LIKE:
                fqn = self._class_by_node.get(node_key(anc))
                if fqn is not None:
                    found = self._field_type(fqn, name)
                    if found is not None:
                        return found
        return None

    def _pattern_binding(self, name: str, use: Node, scope: Node) -> Optional[JavaType]:
        """
        Type of the nearest pattern variable *name* bound before *use*
        inside *scope*: ``x instanceof T name`` or a ``case T name`` label.
        """
        found: Optional[JavaType] = None
        for node in iter_preorder(scope):
            if node.start_byte >= use.start_byte:
                continue
            ident: Optional[Node] = None
            type_node: Optional[Node] = None
            if node.type == "instanceof_expression":
                ident = node.child_by_field_name("name")
                type_node = node.child_by_field_name("right")
                if ident is None:
                    parts = _named(node)
                    if len(parts) >= 3 and parts[-1].type == "identifier":
                        ident, type_node = parts[-1], parts[-2]
            elif node.type in _BINDING_PATTERNS:
                parts = [p for p in _named(node) if p.type != "modifiers"]
                if len(parts) >= 2 and parts[-1].type == "identifier":
                    ident, type_node = parts[-1], parts[-2]
            if ident is not None and type_node is not None \
                    and self.unit.text_of(ident) == name:
                found = self._type_from_node(type_node)
        return found

    def _field_type(self, fqn: str, name: str) -> Optional[JavaType]:
        for anc in self.hierarchy.ancestors(fqn):
            decl = self._classes.get(anc)
            if decl is None or name not in decl.fields:
                continue
            type_node, declarator = decl.fields[name]
            if declarator.type == "enum_constant":
                return JavaType.of_class(anc)
            return self._declared_type(type_node, declarator)
        return None

    # ── expression typing ────────────────────────────────────────────

    def _compute(self, node: Node) -> JavaType:
        t = node.type
        handler = self._HANDLERS.get(t)
        if handler is not None:
            return handler(self, node)
        if t in _INTEGER_LITERALS:
            text = self.unit.text_of(node)
            return JavaType.primitive("long" if text[-1:] in ("l", "L") else "int")
        if t in _FLOAT_LITERALS:
            text = self.unit.text_of(node)
            return JavaType.primitive("float" if text[-1:] in ("f", "F") else "double")
        return ERROR_TYPE

    def _t_parens(self, node: Node) -> JavaType:
        return self.type_of(strip_parens(node))

    def _t_null(self, node: Node) -> JavaType:
        return NULL_TYPE

    def _t_string(self, node: Node) -> JavaType:
        return JavaType.of_class(STRING)

    def _t_char(self, node: Node) -> JavaType:
        return JavaType.primitive("char")

    def _t_boolean(self, node: Node) -> JavaType:
        return JavaType.primitive("boolean")

    def _t_class_literal(self, node: Node) -> JavaType:
        return JavaType.of_class(CLASS)

    def _t_cast(self, node: Node) -> JavaType:
        operand = strip_parens(node.child_by_field_name("value"))
        if operand is not None and operand.type == "null_literal":
            # A cast does not turn the null constant into an exception value.
            return NULL_TYPE
        return self._type_from_node(node.child_by_field_name("type"))

    def _t_new(self, node: Node) -> JavaType:
        return self._type_from_node(node.child_by_field_name("type"))

    def _t_new_array(self, node: Node) -> JavaType:
        element = self._type_from_node(node.child_by_field_name("type"))
        dims = sum(
            self.unit.text_of(d).count("[")
            for d in node.children_by_field_name("dimensions")
        )
        return JavaType.array_of(element, dims or 1)

    def _t_identifier(self, node: Node) -> JavaType:
        name = self.unit.text_of(node)
        var_type = self.lookup_variable(name, node)
        if var_type is not None:
            return var_type
        fqn = self.resolver.resolve_simple(name, node)
        if fqn is not None:
            return JavaType.of_class(fqn).as_type_name()
        return ERROR_TYPE

    def _t_this(self, node: Node) -> JavaType:
        return self.enclosing_class_type(node)

    def _t_field_access(self, node: Node) -> JavaType:
        obj = node.child_by_field_name("object")
        field_name = self.unit.text_of(node.child_by_field_name("field"))
        obj_type = self.type_of(obj)
        if obj_type.kind is TypeKind.ARRAY and field_name == "length":
            return JavaType.primitive("int")
        if obj_type.kind is TypeKind.CLASS:
            if obj_type.is_type_name:
                nested = f"{obj_type.name}.{field_name}"
                if nested in self._classes or self.hierarchy.knows(nested):
                    return JavaType.of_class(nested).as_type_name()
            found = self._field_type(obj_type.name, field_name)
            if found is not None:
                return found
            return ERROR_TYPE
        # ``java.io.IOException`` style qualified names used as expressions.
        dotted = self.unit.text_of(node)
        if self.hierarchy.knows(dotted) or dotted in self._classes:
            return JavaType.of_class(dotted).as_type_name()
        return ERROR_TYPE

    def _t_invocation(self, node: Node) -> JavaType:
        call = CallSite(node, self.unit)
        name = call.method_name()
        recv_type = self.receiver_type(call)
        if recv_type.kind is not TypeKind.CLASS:
            return ERROR_TYPE
        for anc in self.hierarchy.ancestors(recv_type.name):
            decl = self._classes.get(anc)
            if decl is not None and name in decl.methods:
                method = self._pick_overload(decl.methods[name], len(call.arguments()))
                return self._type_from_node(method.child_by_field_name("type"))
            info = self.hierarchy.get(anc)
            if info is not None and name in info.methods:
                return self._from_marker(info.methods[name], recv_type)
        return ERROR_TYPE

    @staticmethod
    def _pick_overload(candidates: Sequence[Node], arity: int) -> Node:
        for method in candidates:
            params = method.child_by_field_name("parameters")
            count = len([p for p in _named(params) if p.type == "formal_parameter"])
            if count == arity:
                return method
        return candidates[0]

    def _from_marker(self, marker: str, receiver: JavaType) -> JavaType:
        if marker == SELF:
            return receiver.as_instance()
        if marker == "void":
            return VOID_TYPE
        if marker in PRIMITIVE_NAMES:
            return JavaType.primitive(marker)
        return JavaType.of_class(marker)

    def _t_ternary(self, node: Node) -> JavaType:
        a = self.type_of(node.child_by_field_name("consequence"))
        b = self.type_of(node.child_by_field_name("alternative"))
        if a.is_null:
            return b
        if b.is_null or a == b:
            return a
        if a.kind is TypeKind.CLASS and b.kind is TypeKind.CLASS:
            if self.hierarchy.is_subtype(a.name, b.name) is Subtyping.YES:
                return b
            if self.hierarchy.is_subtype(b.name, a.name) is Subtyping.YES:
                return a
            return self._least_upper_bound([a, b], default=OBJECT)
        return ERROR_TYPE

    def _t_assignment(self, node: Node) -> JavaType:
        return self.type_of(node.child_by_field_name("left"))

    def _t_array_access(self, node: Node) -> JavaType:
        arr = self.type_of(node.child_by_field_name("array"))
        if arr.kind is TypeKind.ARRAY and arr.element is not None:
            return arr.element
        return ERROR_TYPE

    def _t_binary(self, node: Node) -> JavaType:
        op = node.child_by_field_name("operator")
        op_text = op.type if op is not None else ""
        if op_text in _COMPARISON_OPS:
            return JavaType.primitive("boolean")
        left = self.type_of(node.child_by_field_name("left"))
        right = self.type_of(node.child_by_field_name("right"))
        if op_text == "+" and STRING in (left.name, right.name):
            return JavaType.of_class(STRING)
        return left

    def _t_instanceof(self, node: Node) -> JavaType:
        return JavaType.primitive("boolean")

    _HANDLERS: Dict[str, Callable[[JavaTypeOracle, Node], JavaType]] = {
        "parenthesized_expression": _t_parens,
        "null_literal": _t_null,
        "string_literal": _t_string,
        "text_block": _t_string,
        "character_literal": _t_char,
        "true": _t_boolean,
        "false": _t_boolean,
        "class_literal": _t_class_literal,
        "cast_expression": _t_cast,
        "object_creation_expression": _t_new,
        "array_creation_expression": _t_new_array,
        "identifier": _t_identifier,
        "this": _t_this,
        "field_access": _t_field_access,
        "method_invocation": _t_invocation,
        "ternary_expression": _t_ternary,
        "assignment_expression": _t_assignment,
        "array_access": _t_array_access,
        "binary_expression": _t_binary,
        "instanceof_expression": _t_instanceof,
    }


__all__ = [
    "TypeKind",
    "JavaType",
    "Subtyping",
    "NULL_TYPE",
    "ERROR_TYPE",
    "VOID_TYPE",
    "OBJECT",
    "STRING",
    "THROWABLE",
    "LOGGING_API",
    "SELF",
    "ClassInfo",
    "ClassHierarchy",
    "TypeResolver",
    "JavaTypeOracle",
]
