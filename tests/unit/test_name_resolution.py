"""
Tests for the name resolution pass: identities, import semantics, Python
scoping rules, the resolution cache and failure modes.
"""

import ast
import logging
import sys
from collections import Counter
from pathlib import Path

import pytest
from pycpbundle.analysis.module_system import PackageLoader, PathResolver
from pycpbundle.passes.name_resolution import build_resolver
from pycpbundle.shared.defid import SymbolId, builtin_symbol
from pycpbundle.shared.errors import PackageLoadError, TypeCheckError
from tests.test_utils import write_tree


def _loads(tree: ast.AST, name: str):
    return [n for n in ast.walk(tree) if isinstance(n, ast.Name) and n.id == name and isinstance(n.ctx, ast.Load)]


def _stores(tree: ast.AST, name: str):
    return [n for n in ast.walk(tree) if isinstance(n, ast.Name) and n.id == name and isinstance(n.ctx, ast.Store)]


def _attributes(tree: ast.AST, attr: str):
    return [n for n in ast.walk(tree) if isinstance(n, ast.Attribute) and n.attr == attr]


def _file(files, name: str):
    return next(f for f in files if f.path.name == name)


class CountingLoader(PackageLoader):
    """Loader that counts invocations per (import path, origin dir)."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.calls = Counter()

    def load(self, import_path, origin_dir):
        self.calls[(import_path, str(origin_dir))] += 1
        return super().load(import_path, origin_dir)


@pytest.fixture
def resolve(tmp_path, classifier):
    """Write a tree and resolve its entry; returns (resolver, entry, table, loaded files)."""
    def _resolve(files, entry="main.py", strict=True):
        write_tree(tmp_path, files)
        loader = CountingLoader(PathResolver(classifier, [tmp_path]))
        resolver = build_resolver(loader, classifier, strict=strict)
        source = loader.parse_file(tmp_path / entry)
        table, loaded = resolver.resolve(source)
        return resolver, source, table, loaded
    return _resolve


MATHUTIL = "def double(x):\n    return x * 2\n"


class TestIdentities:

    def test_from_import_resolves_to_definition(self, resolve, tmp_path):
        _, entry, table, _ = resolve({
            "main.py": "from mathutil import double\nprint(double(2))\n",
            "mathutil.py": MATHUTIL,
        })
        origin = str(tmp_path / "mathutil.py")
        assert table.uses[_loads(entry.tree, "double")[0]] == SymbolId("mathutil", "double", origin)
        assert table.uses[_loads(entry.tree, "print")[0]] == builtin_symbol("print")

    def test_import_alias_has_its_own_identity(self, resolve, tmp_path):
        _, entry, table, _ = resolve({
            "main.py": "from mathutil import double as twice\ntwice(1)\n",
            "mathutil.py": MATHUTIL,
        })
        alias = entry.tree.body[0].names[0]
        assert table.defs[alias] == SymbolId("__main__", "twice", str(tmp_path / "main.py"))
        call = entry.tree.body[1].value
        assert table.callee(call) == SymbolId("mathutil", "double", str(tmp_path / "mathutil.py"))

    def test_object_of_prefers_declaration(self, resolve, tmp_path):
        _, entry, table, _ = resolve({
            "main.py": "from mathutil import double as twice\nx = twice(1)\nprint(x)\n",
            "mathutil.py": MATHUTIL,
        })
        main = str(tmp_path / "main.py")
        alias = entry.tree.body[0].names[0]
        assert table.object_of(alias) == SymbolId("__main__", "twice", main)
        assert table.object_of(_stores(entry.tree, "x")[0]) == SymbolId("__main__", "x", main)
        assert table.object_of(_loads(entry.tree, "x")[0]) == SymbolId("__main__", "x", main)
        assert table.object_of(entry.tree.body[1].value) is None

    def test_class_member_call(self, resolve, tmp_path):
        _, entry, table, loaded = resolve({
            "main.py": "import lib\nfrom lib import Point\nPoint.origin()\nlib.Point.origin()\n",
            "lib.py": "class Point:\n    @staticmethod\n    def origin():\n        return Point()\n",
        })
        expected = SymbolId("lib", "Point.origin", str(tmp_path / "lib.py"))
        assert table.callee(entry.tree.body[2].value) == expected
        assert table.callee(entry.tree.body[3].value) == expected
        method = _file(loaded, "lib.py").tree.body[0].body[0]
        assert table.defs[method] == expected

    def test_module_qualified_call(self, resolve, tmp_path):
        _, entry, table, _ = resolve({
            "main.py": "import mathutil\nmathutil.double(3)\n",
            "mathutil.py": MATHUTIL,
        })
        call = entry.tree.body[1].value
        assert table.callee(call) == SymbolId("mathutil", "double", str(tmp_path / "mathutil.py"))
        assert table.modules[call.func.value].name == "mathutil"

    def test_local_qualnames(self, resolve, tmp_path):
        _, entry, table, _ = resolve({
            "main.py": """
                class Point:
                    def norm(self):
                        n = 1
                        return n

                def solve():
                    n = 2
                    return [n * i for i in range(3)]
            """,
        })
        origin = str(tmp_path / "main.py")
        point, solve = entry.tree.body
        method = point.body[0]
        assert table.defs[method] == SymbolId("__main__", "Point.norm", origin)
        assert table.defs[_stores(method, "n")[0]] == SymbolId("__main__", "Point.norm.<locals>.n", origin)
        assert table.defs[_stores(solve, "n")[0]] == SymbolId("__main__", "solve.<locals>.n", origin)
        loop_var = table.defs[_stores(solve, "i")[0]]
        assert loop_var.name.startswith("solve.<locals>.<listcomp@")

    def test_standard_attributes_are_opaque(self, resolve):
        _, entry, table, loaded = resolve({
            "main.py": "import math\nimport os.path\nmath.sqrt(4)\nos.path.join('a')\n",
        })
        assert table.callee(entry.tree.body[2].value) == SymbolId("math", "sqrt")
        assert table.callee(entry.tree.body[3].value) == SymbolId("os.path", "join")
        assert loaded == []

    def test_builtins_pseudo_import(self, resolve):
        _, entry, table, _ = resolve({
            "main.py": "import builtins\nfrom builtins import len as size\nbuiltins.print(size([1]))\n",
        })
        call = entry.tree.body[2].value
        assert table.callee(call) == builtin_symbol("print")
        assert table.callee(call.args[0]) == builtin_symbol("len")

    def test_same_dotted_name_in_two_directories(self):
        assert SymbolId("util", "f", "/a/util.py") != SymbolId("util", "f", "/b/util.py")


class TestImports:

    PKG = {
        "pkg/__init__.py": "from .helpers import inc\n",
        "pkg/helpers.py": "def inc(x):\n    return x + 1\n",
        "pkg/core.py": "from . import helpers\nfrom .helpers import inc\n\ndef step(x):\n    return helpers.inc(inc(x))\n",
    }

    def test_reexport_followed_to_original(self, resolve, tmp_path):
        _, entry, table, _ = resolve({"main.py": "from pkg import inc\ninc(1)\n", **self.PKG})
        call = entry.tree.body[1].value
        assert table.callee(call) == SymbolId("pkg.helpers", "inc", str(tmp_path / "pkg" / "helpers.py"))

    def test_relative_imports_and_single_module_object(self, resolve, tmp_path):
        resolver, _, table, loaded = resolve({"main.py": "import pkg.core\npkg.core.step(1)\n", **self.PKG})
        helpers = [m for m in resolver.modules if m.name == "pkg.helpers"]
        assert len(helpers) == 1
        core = _file(loaded, "core.py")
        expected = SymbolId("pkg.helpers", "inc", str(tmp_path / "pkg" / "helpers.py"))
        assert table.uses[_attributes(core.tree, "inc")[0]] == expected
        assert table.uses[_loads(core.tree, "inc")[0]] == expected

    def test_dotted_import_links_submodules(self, resolve, tmp_path):
        _, entry, table, _ = resolve({"main.py": "import pkg.core\npkg.core.step(1)\n", **self.PKG})
        call = entry.tree.body[1].value
        assert table.callee(call) == SymbolId("pkg.core", "step", str(tmp_path / "pkg" / "core.py"))

    def test_loaded_files_in_discovery_order_without_entry(self, resolve):
        _, _, _, loaded = resolve({"main.py": "import pkg.core\n", **self.PKG})
        assert [f.path.name for f in loaded] == ["__init__.py", "helpers.py", "core.py"]

    def test_relative_import_from_entry_directory(self, resolve, tmp_path):
        _, entry, table, _ = resolve({
            "main.py": "from .mathutil import double\ndouble(1)\n",
            "mathutil.py": MATHUTIL,
        })
        assert table.callee(entry.tree.body[1].value).origin == str(tmp_path / "mathutil.py")

    def test_lazy_submodule_attribute(self, resolve, tmp_path):
        _, entry, table, _ = resolve({
            "main.py": "import tools\ntools.text.shout('x')\n",
            "tools/__init__.py": "",
            "tools/text.py": "def shout(s):\n    return s.upper()\n",
        })
        call = entry.tree.body[1].value
        assert table.callee(call) == SymbolId("tools.text", "shout", str(tmp_path / "tools" / "text.py"))

    def test_star_import_with_all(self, resolve, tmp_path):
        _, entry, table, _ = resolve({
            "main.py": "from lib import *\ndouble(2)\n",
            "lib.py": "__all__ = ['double']\n\ndef double(x):\n    return 2 * x\n\ndef _hidden():\n    pass\n",
        })
        assert table.callee(entry.tree.body[1].value) == SymbolId("lib", "double", str(tmp_path / "lib.py"))

    def test_star_import_without_all_skips_private(self, resolve):
        with pytest.raises(TypeCheckError, match="_hidden"):
            resolve({
                "main.py": "from lib import *\n_hidden()\n",
                "lib.py": "def _hidden():\n    pass\n",
            })

    def test_star_import_from_standard_module(self, resolve):
        _, entry, table, _ = resolve({"main.py": "from math import *\nsqrt(4)\n"})
        assert table.callee(entry.tree.body[1].value) == SymbolId("math", "sqrt")

    def test_attribute_through_standard_star_import(self, resolve):
        _, entry, table, _ = resolve({
            "main.py": "import lib\nlib.sqrt(4)\n",
            "lib.py": "from math import *\n",
        })
        assert table.callee(entry.tree.body[1].value) == SymbolId("math", "sqrt")

    def test_import_cycle(self, resolve, tmp_path):
        resolver, entry, table, loaded = resolve({
            "main.py": "from a import fa\nfa(3)\n",
            "a.py": "import b\n\ndef fa(n):\n    return b.fb(n - 1) if n > 0 else 0\n",
            "b.py": "import a\n\ndef fb(n):\n    return a.fa(n)\n",
        })
        b = _file(loaded, "b.py")
        assert table.uses[_attributes(b.tree, "fa")[0]] == SymbolId("a", "fa", str(tmp_path / "a.py"))
        assert [f.path.name for f in loaded] == ["a.py", "b.py"]
        assert all(m.checked for m in resolver.modules)

    def test_cycle_through_from_import(self, resolve, tmp_path):
        _, _, table, loaded = resolve({
            "main.py": "import a\n",
            "a.py": "from b import g\n\ndef f():\n    return g()\n",
            "b.py": "from a import f\n\ndef g():\n    return 1\n\ndef h():\n    return f()\n",
        })
        b = _file(loaded, "b.py")
        assert table.uses[_loads(b.tree, "f")[0]] == SymbolId("a", "f", str(tmp_path / "a.py"))


class TestResolutionCache:

    def test_same_key_same_object_loaded_once(self, tmp_path, classifier):
        write_tree(tmp_path, {"mathutil.py": MATHUTIL})
        loader = CountingLoader(PathResolver(classifier, [tmp_path]))
        resolver = build_resolver(loader, classifier)
        first = resolver.import_from("mathutil", tmp_path)
        second = resolver.import_from("mathutil", tmp_path)
        assert first is second
        assert loader.calls[("mathutil", str(tmp_path))] == 1

    def test_different_key_same_file_shares_module(self, tmp_path, classifier):
        write_tree(tmp_path, {"mathutil.py": MATHUTIL})
        loader = CountingLoader(PathResolver(classifier, [tmp_path]))
        resolver = build_resolver(loader, classifier)
        absolute = resolver.import_from("mathutil", tmp_path)
        relative = resolver.import_from(".mathutil", tmp_path)
        assert absolute is relative
        assert len(resolver.files) == 1

    def test_resolve_before_configure(self, tmp_path, classifier):
        from pycpbundle.passes.name_resolution import SymbolResolver
        write_tree(tmp_path, {"main.py": "x = 1\n"})
        loader = PackageLoader(PathResolver(classifier, [tmp_path]))
        resolver = SymbolResolver(loader, classifier)
        with pytest.raises(RuntimeError):
            resolver.resolve(loader.parse_file(tmp_path / "main.py"))


class TestScoping:

    def test_class_scope_not_visible_in_methods(self, resolve):
        with pytest.raises(TypeCheckError, match="name 'k' is not defined"):
            resolve({"main.py": "class C:\n    k = 1\n    def m(self):\n        return k\n"})

    def test_class_scope_visible_in_body(self, resolve):
        resolve({"main.py": "class C:\n    k = 1\n    j = k + 1\n"})

    def test_comprehension_variable_does_not_leak(self, resolve):
        with pytest.raises(TypeCheckError, match="name 'i' is not defined"):
            resolve({"main.py": "xs = [i for i in range(3)]\nprint(i)\n"})

    def test_walrus_binds_in_enclosing_scope(self, resolve, tmp_path):
        _, entry, table, _ = resolve({
            "main.py": "if any((hit := x) > 1 for x in [1, 2]):\n    print(hit)\n",
        })
        assert table.uses[_loads(entry.tree, "hit")[0]] == SymbolId("__main__", "hit", str(tmp_path / "main.py"))

    def test_global_and_nonlocal(self, resolve, tmp_path):
        _, entry, table, _ = resolve({
            "main.py": """
                def bump():
                    global counter
                    counter = 1

                def outer():
                    total = 0
                    def inner():
                        nonlocal total
                        total += 1
                    inner()
                    return total

                bump()
                print(counter)
            """,
        })
        origin = str(tmp_path / "main.py")
        bump, outer = entry.tree.body[0], entry.tree.body[1]
        assert table.defs[_stores(bump, "counter")[0]] == SymbolId("__main__", "counter", origin)
        assert table.uses[_loads(entry.tree.body[-1], "counter")[0]] == SymbolId("__main__", "counter", origin)
        assert table.defs[_stores(outer, "total")[-1]] == SymbolId("__main__", "outer.<locals>.total", origin)

    def test_except_match_and_lambda_bindings(self, resolve):
        resolve({
            "main.py": """
                try:
                    pass
                except ValueError as err:
                    print(err)

                match [1, 2]:
                    case [first, *rest]:
                        print(first, rest)
                    case {"k": v, **others}:
                        print(v, others)

                square = lambda y, k=2: y ** k
                print(square(3))
            """,
        })

    def test_super_and_class_cell(self, resolve):
        resolve({
            "main.py": """
                class Base:
                    def hello(self):
                        return 1

                class Child(Base):
                    def hello(self):
                        return super().hello() + (__class__ is Child)
            """,
        })

    def test_module_dunders(self, resolve):
        resolve({"main.py": "if __name__ == '__main__':\n    print(__file__, __doc__)\n"})

    def test_string_annotations_not_resolved(self, resolve):
        resolve({"main.py": "def f(x: 'Missing') -> 'AlsoMissing':\n    return x\n"})

    def test_future_annotations_not_resolved(self, resolve):
        resolve({
            "main.py": "from __future__ import annotations\n\ndef f(x: Missing) -> None:\n    y: AlsoMissing = x\n    return y\n",
        })

    def test_annotations_resolved_by_default(self, resolve):
        with pytest.raises(TypeCheckError, match="Missing"):
            resolve({"main.py": "def f(x: Missing):\n    return x\n"})

    @pytest.mark.skipif(sys.version_info < (3, 12), reason="PEP 695 syntax")
    def test_type_parameters(self, resolve, tmp_path):
        _, entry, table, _ = resolve({
            "main.py": "def first[T](xs: list[T]) -> T:\n    return xs[0]\n\ntype Pair[K] = tuple[K, K]\n",
        })
        t_use = _loads(entry.tree.body[0], "T")[0]
        assert table.uses[t_use].name == "first.<type_params>.T"


class TestFailures:

    def test_undefined_name_location(self, resolve):
        with pytest.raises(TypeCheckError) as exc_info:
            resolve({"main.py": "print(dobule(2))\n"})
        err = exc_info.value
        assert err.code == "E0004"
        assert err.location.line == 1
        assert err.location.column == 7

    def test_missing_module(self, resolve):
        with pytest.raises(PackageLoadError) as exc_info:
            resolve({"main.py": "import os\n\nimport nosuchmod\n"})
        assert exc_info.value.location.line == 3

    def test_cannot_import_name(self, resolve):
        with pytest.raises(TypeCheckError, match="cannot import name 'triple' from 'mathutil'"):
            resolve({"main.py": "from mathutil import triple\n", "mathutil.py": MATHUTIL})

    def test_missing_attribute_on_local_module(self, resolve):
        with pytest.raises(TypeCheckError, match="module 'mathutil' has no attribute 'tripple'"):
            resolve({"main.py": "import mathutil\nmathutil.tripple(3)\n", "mathutil.py": MATHUTIL})

    def test_module_getattr_allows_any_attribute(self, resolve):
        resolve({
            "main.py": "import dyn\ndyn.anything(1)\n",
            "dyn.py": "def __getattr__(name):\n    return len\n",
        })

    def test_error_in_transitive_module(self, resolve, tmp_path):
        with pytest.raises(TypeCheckError) as exc_info:
            resolve({
                "main.py": "import mathutil\n",
                "mathutil.py": "def double(x):\n    return undefined_helper(x)\n",
            })
        assert exc_info.value.location.file == str(tmp_path / "mathutil.py")

    def test_lenient_mode_logs(self, resolve, caplog):
        with caplog.at_level(logging.WARNING):
            _, entry, table, _ = resolve({"main.py": "print(dobule(2))\n"}, strict=False)
        assert "name 'dobule' is not defined" in caplog.text
        assert _loads(entry.tree, "dobule")[0] not in table.uses
