import contextlib
import logging

ENCODING = 'utf-8'  # (default) for text handed to the stream

NORMAL = "normal"
TERSE = "terse"   # no indentation or newline around the tag


def format_value(value):
    """Turn a str, int, float or bool into the text that gets written.

    Booleans come out as 'True' / 'False' (not the XML Schema spelling),
    integers as with '%d' and floats as with '%g'."""
    # bool first: it's a subclass of int
    if type(value) == bool:
        return "True" if value else "False"
    elif type(value) == int:
        return "%d" % value
    elif type(value) == float:
        return "%g" % value
    elif type(value) == str:
        return value

    raise TypeError("Can't write a value of type {}".format(type(value).__name__))


class XmlOutput:
    """Writes an XML document to `stream` a piece at a time.

    `stream` only needs a write() method that takes bytes.  We keep track
    of which elements are open and whether an opening tag is still taking
    attributes, and assert on any call that would make the document
    malformed.  After a failed assertion the object is in no fit state to
    keep using.

    Nothing is escaped here.  Text and attribute values are written exactly
    as given, so escape them yourself if they can contain markup."""
    def __init__(self, stream, encoding=ENCODING, indent='\t'):
        self.stream = stream
        self.encoding = encoding
        self.indent = indent
        self.indent_level = 0
        self.tag_stack = []
        self.in_attributes = False

    @property
    def depth(self):
        return self.indent_level

    ###
    ### Raw output
    ###

    def write_raw(self, data):
        assert type(data) == bytes
        self.stream.write(data)

    def write_string(self, txt):
        assert type(txt) == str
        self.write_raw(txt.encode(self.encoding))

    def write_line(self, txt):
        assert type(txt) == str
        self.write_string(txt + "\n")

    def __lshift__(self, value):
        self.write_string(format_value(value))
        return self

    def write_indent(self):
        self.write_string(self.indent * self.indent_level)

    ###
    ### Document
    ###

    def begin_document(self, version='1.0', encoding='UTF-8', standalone=True):
        """Write the XML declaration.  This belongs before the first element;
        nothing stops you from calling it later, but the result isn't XML."""
        assert type(version) == str and version != "", "version is required"
        assert type(encoding) == str and encoding != "", "encoding is required"

        logging.debug("Beginning XML document (version {}, encoding {})".format(version, encoding))
        self << '<?xml version="' << version << '" encoding="' << encoding << '"'
        self << ' standalone="' << ("yes" if standalone else "no") << '"?>\n'

    def end_document(self):
        assert not self.in_attributes, \
            "Document ended inside the attributes of <{}>".format(self.tag_stack[-1])
        assert len(self.tag_stack) == 0, \
            "Document ended with open elements: {}".format(", ".join(self.tag_stack))
        logging.debug("Ended XML document")

    ###
    ### Elements
    ###

    def begin_element(self, name, mode=NORMAL):
        """Open an element whose tag has no attributes."""
        assert type(name) == str and name != "", "element name is required"
        assert not self.in_attributes, "Can't open <{}> before end_attrs()".format(name)

        self.write_indent()
        self.indent_level += 1
        self.tag_stack.append(name)
        self << "<" << name << ">"
        if mode != TERSE:
            self << "\n"

    def begin_element_attrs(self, name):
        """Open an element and leave its tag open for write_attr() calls.
        Finish the tag with end_attrs()."""
        assert type(name) == str and name != "", "element name is required"
        assert not self.in_attributes, "Can't open <{}> before end_attrs()".format(name)

        self.write_indent()
        self.indent_level += 1
        self.tag_stack.append(name)
        self.in_attributes = True
        self << "<" << name

    def end_attrs(self, mode=NORMAL):
        assert self.in_attributes, "end_attrs() without begin_element_attrs()"
        self.in_attributes = False
        self << ">"
        if mode != TERSE:
            self << "\n"

    def end_element(self, mode=NORMAL):
        """Close the most recently opened element."""
        assert len(self.tag_stack) > 0, "No open element to close"
        assert not self.in_attributes, "Can't close <{}> before end_attrs()".format(self.tag_stack[-1])
        assert self.indent_level > 0
        self.indent_level -= 1
        name = self.tag_stack.pop()

        if mode != TERSE:
            self.write_indent()

        self << "</" << name << ">" << "\n"

    def close_all(self):
        """Close every open element, effectively finalizing the document."""
        assert not self.in_attributes
        while len(self.tag_stack) > 0:
            self.end_element()

    def write_element(self, name, value):
        """Write <name>value</name> on one line."""
        assert type(name) == str and name != "", "element name is required"
        # format before writing anything, so a bad value leaves no half a tag
        text = format_value(value)
        self.begin_element(name, TERSE)
        self.write_string(text)
        self.end_element(TERSE)

    def write_attr(self, name, value):
        assert self.in_attributes, "Attribute `{}' written outside of an opening tag".format(name)
        assert type(name) == str and name != "", "attribute name is required"
        text = format_value(value)
        self << " " << name << '="' << text << '"'

    @contextlib.contextmanager
    def element(self, name, attrs=None, mode=NORMAL):
        """Open an element for the duration of a `with` block.

        If the block raises, the element is left open; the document is
        broken at that point anyway."""
        if attrs:
            self.begin_element_attrs(name)
            for k, v in attrs.items():
                self.write_attr(k, v)
            self.end_attrs(mode)
        else:
            self.begin_element(name, mode)

        yield self

        self.end_element(mode)
