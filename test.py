import unittest
from unittest import mock

import io
import json
import os
import re
import tempfile

import xmloutput
import xmllog


def new_output():
    stream = io.BytesIO()
    return stream, xmloutput.XmlOutput(stream)


class TestFormatValue(unittest.TestCase):
    def test_booleans_are_capitalized(self):
        self.assertEqual(xmloutput.format_value(True), "True")
        self.assertEqual(xmloutput.format_value(False), "False")

    def test_integers(self):
        self.assertEqual(xmloutput.format_value(42), "42")
        self.assertEqual(xmloutput.format_value(-7), "-7")

    def test_floats_use_six_significant_digits(self):
        self.assertEqual(xmloutput.format_value(1.5), "1.5")
        self.assertEqual(xmloutput.format_value(2.0), "2")
        self.assertEqual(xmloutput.format_value(1234567.0), "1.23457e+06")
        self.assertEqual(xmloutput.format_value(0.00001), "1e-05")

    def test_text_is_unchanged(self):
        self.assertEqual(xmloutput.format_value('a "quoted" <b>'), 'a "quoted" <b>')

    def test_other_types_are_rejected(self):
        with self.assertRaises(TypeError):
            xmloutput.format_value(None)
        with self.assertRaises(TypeError):
            xmloutput.format_value(b"bytes")


class TestXmlOutput(unittest.TestCase):
    def test_example_document(self):
        stream, out = new_output()
        out.begin_document("1.0", "UTF-8", True)
        out.begin_element("root")
        out.write_element("child", 42)
        out.end_element()
        out.end_document()

        self.assertEqual(
                stream.getvalue(),
                b'<?xml version="1.0" encoding="UTF-8" standalone="yes"?>\n'
                b'<root>\n'
                b'\t<child>42</child>\n'
                b'</root>\n')

    def test_declaration_not_standalone(self):
        stream, out = new_output()
        out.begin_document("1.1", "ISO-8859-1", False)
        self.assertEqual(
                stream.getvalue(),
                b'<?xml version="1.1" encoding="ISO-8859-1" standalone="no"?>\n')

    def test_declaration_needs_version_and_encoding(self):
        stream, out = new_output()
        with self.assertRaises(AssertionError):
            out.begin_document("", "UTF-8", True)
        with self.assertRaises(AssertionError):
            out.begin_document("1.0", "", True)

    def test_nesting(self):
        stream, out = new_output()
        out.begin_element("a")
        out.begin_element("b")
        out.end_element()
        out.end_element()
        out.end_document()

        self.assertEqual(stream.getvalue(), b"<a>\n\t<b>\n\t</b>\n</a>\n")

    def test_closing_tags_match_most_recent_open(self):
        stream, out = new_output()
        out.begin_element("a")
        out.begin_element("b")
        out.end_element()
        out.begin_element("c")
        out.end_element()
        out.end_element()

        closing = re.findall(rb"</(\w+)>", stream.getvalue())
        self.assertEqual(closing, [b"b", b"c", b"a"])

    def test_indentation_at_depth_two(self):
        stream, out = new_output()
        out.begin_element("a")
        out.begin_element("b")
        out.begin_element("c")
        self.assertEqual(out.depth, 3)
        out.end_element()
        out.end_element()
        out.end_element()

        lines = stream.getvalue().split(b"\n")
        self.assertEqual(lines[2], b"\t\t<c>")
        self.assertEqual(lines[3], b"\t\t</c>")

    def test_terse_element(self):
        stream, out = new_output()
        out.begin_element("x", xmloutput.TERSE)
        out.write_string("5")
        out.end_element(xmloutput.TERSE)

        self.assertEqual(stream.getvalue(), b"<x>5</x>\n")

    def test_write_element_values(self):
        stream, out = new_output()
        out.write_element("s", "text")
        out.write_element("i", -3)
        out.write_element("f", 0.25)
        out.write_element("b", False)

        self.assertEqual(
                stream.getvalue(),
                b"<s>text</s>\n<i>-3</i>\n<f>0.25</f>\n<b>False</b>\n")

    def test_write_element_needs_a_name(self):
        stream, out = new_output()
        with self.assertRaises(AssertionError):
            out.write_element("", 1)
        with self.assertRaises(AssertionError):
            out.write_element(None, 1)

    def test_elements_and_attributes_need_names(self):
        stream, out = new_output()
        with self.assertRaises(AssertionError):
            out.begin_element("")
        with self.assertRaises(AssertionError):
            out.begin_element(None)
        with self.assertRaises(AssertionError):
            out.begin_element_attrs("")
        with self.assertRaises(AssertionError):
            out.begin_element_attrs(None)
        self.assertEqual(stream.getvalue(), b"")

        out.begin_element_attrs("a")
        with self.assertRaises(AssertionError):
            out.write_attr("", 1)
        with self.assertRaises(AssertionError):
            out.write_attr(None, 1)

    def test_bad_element_value_writes_nothing(self):
        stream, out = new_output()
        out.begin_element("root")
        before = stream.getvalue()

        with self.assertRaises(TypeError):
            out.write_element("x", None)

        self.assertEqual(stream.getvalue(), before)
        self.assertEqual(out.tag_stack, ["root"])
        self.assertEqual(out.depth, 1)

    def test_bad_attribute_value_writes_nothing(self):
        stream, out = new_output()
        out.begin_element_attrs("a")

        with self.assertRaises(TypeError):
            out.write_attr("k", None)

        self.assertEqual(stream.getvalue(), b"<a")
        out.end_attrs(xmloutput.TERSE)
        out.end_element(xmloutput.TERSE)
        self.assertEqual(stream.getvalue(), b"<a></a>\n")

    def test_stack_matches_depth_when_stream_fails(self):
        class BrokenStream:
            def write(self, data):
                if b"<" in data:
                    raise OSError("disk full")

        out = xmloutput.XmlOutput(BrokenStream())
        with self.assertRaises(OSError):
            out.begin_element("a")
        self.assertEqual(out.depth, len(out.tag_stack))

        with self.assertRaises(OSError):
            out.end_element()
        self.assertEqual(out.depth, len(out.tag_stack))

        with self.assertRaises(OSError):
            out.begin_element_attrs("b")
        self.assertEqual(out.depth, len(out.tag_stack))

    def test_attributes(self):
        stream, out = new_output()
        out.begin_element_attrs("item")
        out.write_attr("name", "thing")
        out.write_attr("count", 3)
        out.write_attr("scale", 1.5)
        out.write_attr("visible", True)
        out.write_attr("hidden", False)
        out.end_attrs()
        out.end_element()
        out.end_document()

        self.assertEqual(
                stream.getvalue(),
                b'<item name="thing" count="3" scale="1.5" visible="True" hidden="False">\n'
                b'</item>\n')

    def test_terse_attributes(self):
        stream, out = new_output()
        out.begin_element("list")
        out.begin_element_attrs("entry")
        out.write_attr("id", 7)
        out.end_attrs(xmloutput.TERSE)
        out << "seven"
        out.end_element(xmloutput.TERSE)
        out.end_element()

        self.assertEqual(
                stream.getvalue(),
                b'<list>\n\t<entry id="7">seven</entry>\n</list>\n')

    def test_values_are_not_escaped(self):
        stream, out = new_output()
        out.begin_element_attrs("a")
        out.write_attr("v", 'say "hi" <now>')
        out.end_attrs(xmloutput.TERSE)
        out.write_string("1 < 2 & 3")
        out.end_element(xmloutput.TERSE)

        self.assertEqual(
                stream.getvalue(),
                b'<a v="say "hi" <now>">1 < 2 & 3</a>\n')

    def test_attribute_outside_opening_tag(self):
        stream, out = new_output()
        with self.assertRaises(AssertionError):
            out.write_attr("a", 1)

        out.begin_element("plain")
        with self.assertRaises(AssertionError):
            out.write_attr("a", 1)

    def test_attribute_after_end_attrs(self):
        stream, out = new_output()
        out.begin_element_attrs("a")
        out.end_attrs()
        with self.assertRaises(AssertionError):
            out.write_attr("late", 1)

    def test_end_attrs_without_attributes_open(self):
        stream, out = new_output()
        out.begin_element("a")
        with self.assertRaises(AssertionError):
            out.end_attrs()

    def test_no_element_inside_attributes(self):
        stream, out = new_output()
        out.begin_element_attrs("a")
        with self.assertRaises(AssertionError):
            out.begin_element("b")

        stream, out = new_output()
        out.begin_element_attrs("a")
        with self.assertRaises(AssertionError):
            out.begin_element_attrs("b")

    def test_no_close_inside_attributes(self):
        stream, out = new_output()
        out.begin_element_attrs("a")
        with self.assertRaises(AssertionError):
            out.end_element()

    def test_closing_more_than_opened(self):
        stream, out = new_output()
        with self.assertRaises(AssertionError):
            out.end_element()

        out.begin_element("a")
        out.end_element()
        with self.assertRaises(AssertionError):
            out.end_element()

    def test_end_document_with_open_element(self):
        stream, out = new_output()
        out.begin_element("a")
        with self.assertRaises(AssertionError):
            out.end_document()

    def test_end_document_inside_attributes(self):
        stream, out = new_output()
        out.begin_element_attrs("a")
        with self.assertRaises(AssertionError):
            out.end_document()

    def test_end_document_emits_nothing(self):
        stream, out = new_output()
        out.end_document()
        self.assertEqual(stream.getvalue(), b"")

    def test_stack_matches_depth(self):
        stream, out = new_output()
        out.begin_element("a")
        out.begin_element_attrs("b")
        self.assertEqual(out.tag_stack, ["a", "b"])
        self.assertEqual(out.depth, len(out.tag_stack))
        out.end_attrs()
        out.end_element()
        self.assertEqual(out.tag_stack, ["a"])
        self.assertEqual(out.depth, 1)

    def test_close_all(self):
        stream, out = new_output()
        out.begin_element("a")
        out.begin_element("b")
        out.close_all()
        out.end_document()

        self.assertEqual(stream.getvalue(), b"<a>\n\t<b>\n\t</b>\n</a>\n")
        self.assertEqual(out.depth, 0)

    def test_raw_and_line_output(self):
        stream, out = new_output()
        out.write_raw(b"<!-- raw -->")
        out.write_line("")
        out.write_line("<!-- line -->")
        (out << 1 << " " << 2.5 << " " << True).write_line("")

        self.assertEqual(stream.getvalue(), b"<!-- raw -->\n<!-- line -->\n1 2.5 True\n")

    def test_encoding(self):
        stream = io.BytesIO()
        out = xmloutput.XmlOutput(stream, encoding="latin-1")
        out.write_element("name", "café")
        self.assertEqual(stream.getvalue(), b"<name>caf\xe9</name>\n")


class TestElementScope(unittest.TestCase):
    def test_nested_scopes(self):
        stream, out = new_output()
        with out.element("root"):
            with out.element("item", {"id": 1, "ok": True}):
                out.write_element("value", 2.5)
            with out.element("note", mode=xmloutput.TERSE):
                out << "hi"
        out.end_document()

        self.assertEqual(
                stream.getvalue(),
                b'<root>\n'
                b'\t<item id="1" ok="True">\n'
                b'\t\t<value>2.5</value>\n'
                b'\t</item>\n'
                b'\t<note>hi</note>\n'
                b'</root>\n')

    def test_scope_left_open_on_error(self):
        stream, out = new_output()
        with self.assertRaises(RuntimeError):
            with out.element("root"):
                raise RuntimeError("stop")

        self.assertEqual(out.tag_stack, ["root"])


class TestEscape(unittest.TestCase):
    def test_special_characters(self):
        self.assertEqual(
                xmllog.escape('<a href="x">Tom & Jerry\'s</a>'),
                '&lt;a href=&quot;x&quot;&gt;Tom &amp; Jerry&apos;s&lt;/a&gt;')

    def test_ampersand_is_not_escaped_twice(self):
        self.assertEqual(xmllog.escape("<"), "&lt;")

    def test_newlines_are_dropped(self):
        self.assertEqual(xmllog.escape("one\r\ntwo\n"), "onetwo")


class TestXmlLogFile(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)

    def read(self, filename):
        with open(filename, 'rb') as f:
            return f.read().decode('utf-8')

    def test_log_document(self):
        log = xmllog.XmlLogFile({'filename': os.path.join(self.tmp.name, 'logs', 'NAME.xml'),
                                 'name': 'world'})
        log.write_line("hello <there> & welcome\r\n")
        log.write_line("second")
        log.close()

        self.assertEqual(log.filename, os.path.join(self.tmp.name, 'logs', 'world.xml'))
        lines = self.read(log.filename).split("\n")

        self.assertEqual(lines[0], '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>')
        self.assertEqual(lines[1], "<log>")
        self.assertRegex(lines[2], r'^\t<line date="[^"]+">hello &lt;there&gt; &amp; welcome</line>$')
        self.assertRegex(lines[3], r'^\t<line date="[^"]+">second</line>$')
        self.assertEqual(lines[4], "</log>")
        self.assertEqual(lines[5], "")

    def test_date_in_filename(self):
        log = xmllog.XmlLogFile({'filename': os.path.join(self.tmp.name, 'DATE.xml')})
        with mock.patch('time.strftime', return_value="2026-10-18_1200"):
            log.open()
        log.close()

        self.assertEqual(log.filename, os.path.join(self.tmp.name, '2026-10-18_1200.xml'))

    def test_context_manager(self):
        filename = os.path.join(self.tmp.name, 'ctx.xml')
        with xmllog.XmlLogFile({'filename': filename}) as log:
            self.assertTrue(log.is_open())
            log.write_line("inside")

        self.assertFalse(log.is_open())
        self.assertTrue(self.read(filename).endswith("</log>\n"))

    def test_open_twice(self):
        log = xmllog.XmlLogFile({'filename': os.path.join(self.tmp.name, 'twice.xml')})
        log.open()
        self.addCleanup(log.close)
        with self.assertRaises(ValueError):
            log.open()

    def test_close_when_closed(self):
        log = xmllog.XmlLogFile({'filename': os.path.join(self.tmp.name, 'closed.xml')})
        with self.assertRaises(ValueError):
            log.close()

    def test_existing_file(self):
        filename = os.path.join(self.tmp.name, 'exists.xml')
        with open(filename, 'w') as f:
            f.write("keep me")

        log = xmllog.XmlLogFile({'filename': filename})
        with self.assertLogs(level='ERROR'):
            with self.assertRaises(FileExistsError):
                log.open()

        self.assertFalse(log.is_open())
        self.assertEqual(self.read(filename), "keep me")


class TestMain(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)

    def test_missing_config(self):
        with mock.patch('sys.stdout', new_callable=io.StringIO) as stdout:
            status = xmllog.main(['xmllog', os.path.join(self.tmp.name, 'nope.json')])

        self.assertEqual(status, 1)
        self.assertIn("not found", stdout.getvalue())

    def test_invalid_config(self):
        config = os.path.join(self.tmp.name, 'config.json')
        with open(config, 'w') as f:
            f.write("{'filename': not json")

        with mock.patch('sys.stdout', new_callable=io.StringIO) as stdout:
            status = xmllog.main(['xmllog', config])

        self.assertEqual(status, 1)
        self.assertIn("not valid JSON", stdout.getvalue())

    def test_missing_filename_setting(self):
        config = os.path.join(self.tmp.name, 'config.json')
        with open(config, 'w') as f:
            json.dump({'name': 'x'}, f)

        with mock.patch('sys.stdout', new_callable=io.StringIO):
            self.assertEqual(xmllog.main(['xmllog', config]), 1)

    def test_logs_standard_input(self):
        output = os.path.join(self.tmp.name, 'out', 'NAME.xml')
        config = os.path.join(self.tmp.name, 'config.json')
        with open(config, 'w') as f:
            json.dump({'filename': output, 'name': 'stdin', 'log_level': 'warning'}, f)

        with mock.patch('sys.stdin', io.StringIO("first\nsecond\n")):
            status = xmllog.main(['xmllog', config])

        self.assertEqual(status, 0)
        with open(os.path.join(self.tmp.name, 'out', 'stdin.xml'), 'rb') as f:
            text = f.read().decode('utf-8')

        self.assertEqual(len(re.findall(r"<line date=", text)), 2)
        self.assertIn(">first</line>", text)
        self.assertIn(">second</line>", text)


if __name__ == '__main__':
    unittest.main()
