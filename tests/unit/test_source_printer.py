"""
Tests for the source printer: original text reuse, comment blocks,
decorators, shebang, blank lines and the ast.unparse fallback.
"""

import ast

import pytest
from pycpbundle.backends.source_printer import SourcePrinter
from pycpbundle.frontend.parser import Parser
from pycpbundle.passes.declaration_index import _split_import
from pycpbundle.shared.errors import SerializationError
from pycpbundle.shared.nodes import Declaration

DOUBLE = """
# Double a number.
def double(x):
    return x * 2  # twice
"""


class TestRendering:

    def test_exact_output(self, bundle):
        result = bundle({"main.py": "from lib import double\nprint(double(2))\n", "lib.py": DOUBLE})
        assert result.text == (
            "from lib import double\n"
            "print(double(2))\n"
            "\n"
            "\n"
            "# Double a number.\n"
            "def double(x):\n"
            "    return x * 2  # twice\n"
        )

    def test_duplicates_rendered(self, bundle):
        result = bundle({"main.py": "from lib import double\ndouble(1)\ndouble(2)\n", "lib.py": DOUBLE})
        assert result.text.count("def double(x):") == 2

    def test_shebang_kept_first(self, bundle):
        result = bundle({
            "main.py": "#!/usr/bin/env python3\n# entry\nfrom lib import double\ndouble(2)\n",
            "lib.py": DOUBLE,
        })
        lines = result.text.splitlines()
        assert lines[0] == "#!/usr/bin/env python3"
        assert lines[1] == "# entry"
        assert result.text.count("#!/usr/bin/env python3") == 1

    def test_decorators_kept(self, bundle):
        result = bundle({
            "main.py": "from lib import fib\nfib(10)\n",
            "lib.py": """
                import functools

                # memoized
                @functools.lru_cache(maxsize=None)
                def fib(n):
                    return n if n < 2 else fib(n - 1) + fib(n - 2)
            """,
        })
        assert "# memoized\n@functools.lru_cache(maxsize=None)\ndef fib(n):\n" in result.text

    def test_consecutive_declarations_keep_spacing(self, bundle):
        result = bundle({
            "main.py": "from lib import b\nb()\n",
            "lib.py": "def c():\n    return 1\n\ndef b():\n    return c()\n",
        })
        assert "def c():\n    return 1\n\ndef b():\n" in result.text

    def test_reformat_drops_inline_comments(self, bundle):
        result = bundle(
            {"main.py": "from lib import double\ndouble(2)  # call\n", "lib.py": DOUBLE},
            preserve_source=False,
        )
        assert "# Double a number.\ndef double(x):\n    return x * 2\n" in result.text
        assert "# twice" not in result.text
        assert "# call" not in result.text

    def test_output_is_valid_python(self, bundle):
        result = bundle({
            "main.py": "from lib import Point\nprint(Point(1, 2))\n",
            "lib.py": """
                class Point:
                    \"\"\"A point.\"\"\"

                    def __init__(self, x, y):
                        self.x, self.y = x, y
            """,
        })
        ast.parse(result.text)


class TestDeclarations:

    @pytest.fixture
    def source(self, tmp_path):
        return Parser().parse("# tools\nimport os, sys\n", tmp_path / "m.py")

    def test_synthesized_import_unparsed(self, source):
        stmt = source.tree.body[0]
        parts = [
            Declaration(part, source, (part.names[0].name,), source.doc_of(stmt), synthesized=True)
            for part in _split_import(stmt)
        ]
        printer = SourcePrinter()
        assert printer.render_declaration(parts[0]) == "# tools\nimport os"
        assert printer.render_declaration(parts[1]) == "# tools\nimport sys"

    def test_original_text_of_multiline_statement(self, tmp_path):
        source = Parser().parse("VALUES = [\n    1,\n    2,\n]\n", tmp_path / "m.py")
        unit = Declaration(source.tree.body[0], source, ("VALUES",))
        assert SourcePrinter().render_declaration(unit) == "VALUES = [\n    1,\n    2,\n]"
        assert SourcePrinter(preserve_source=False).render_declaration(unit) == "VALUES = [1, 2]"

    def test_unprintable_statement(self, source):
        broken = ast.Expr(value=42)
        with pytest.raises(SerializationError) as exc_info:
            SourcePrinter().render_declaration(Declaration(broken, source, (), synthesized=True))
        assert exc_info.value.code == "E0005"
