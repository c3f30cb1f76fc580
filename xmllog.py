"""Keep a log of text lines as an XML document.

Each line ends up as

   <line date="2026-01-02T03:04:05.678901+00:00">text of the line</line>

inside a single <log> root element.  Run as a script to log standard input
using the settings in a JSON configuration file."""

import xmloutput

import datetime
import time
import logging
import json

import os
import sys

CONFIG_FILE = 'config.json'

ENTITIES = [
      ('&', '&amp;'),      # must come first
      ('<', '&lt;'),
      ('>', '&gt;'),
      ('"', '&quot;'),
      ("'", '&apos;'),
]


def escape(txt):
    """Make `txt` safe to use as element text or an attribute value.
    Newlines are dropped, since each log entry is kept on one line."""
    for char, entity in ENTITIES:
        txt = txt.replace(char, entity)
    return txt.replace('\r', '').replace('\n', '')


class XmlLogFile:
    def __init__(self, options):
        self.filename_template = options['filename']
        self.name = options.get('name', 'log')
        self.filename = None
        self.filehandle = None
        self.xml = None

        # (Try to) make sure there's a directory to put logs in.
        directory = os.path.dirname(self.get_new_filename())
        if directory != "":
            os.makedirs(directory, exist_ok=True)

    def get_new_filename(self):
        return self.filename_template \
                   .replace('DATE', time.strftime("%Y-%m-%d_%H%M")) \
                   .replace('NAME', self.name)

    def is_open(self):
        return self.filehandle is not None

    def open(self):
        if self.filehandle is not None:
            raise ValueError("Cannot open log when already open")

        self.filename = self.get_new_filename()

        try:
            self.filehandle = open(self.filename, 'xb')
        except FileExistsError:
            logging.error("Can't create logfile {}: it exists".format(self.filename))
            raise
        except FileNotFoundError:
            # This happens when it can't find the directory to put it in.
            logging.error("Can't create logfile {}: file not found (does the parent directory exist?)".format(self.filename))
            raise
        except PermissionError:
            logging.error("Can't create logfile {}: you don't have permission".format(self.filename))
            raise

        logging.info("Opened logfile {}".format(self.filename))

        self.xml = xmloutput.XmlOutput(self.filehandle)
        self.xml.begin_document("1.0", "UTF-8", True)
        self.xml.begin_element("log")

    def close(self):
        if self.filehandle is None:
            raise ValueError("Cannot close log when already closed")

        self.xml.close_all()
        self.xml.end_document()
        self.filehandle.close()
        self.filehandle = None
        self.xml = None

        logging.info("Closed logfile {}".format(self.filename))

    def write_line(self, line):
        if self.filehandle is None:
            self.open()

        # The line may well come with its own trailing newline; entries are
        # already one per line.
        text = escape(line.rstrip('\r\n'))
        logging.debug("Logging line {}".format(repr(text)))

        self.xml.begin_element_attrs("line")
        self.xml.write_attr("date", datetime.datetime.now(datetime.timezone.utc).isoformat())
        self.xml.end_attrs(xmloutput.TERSE)
        self.xml << text
        self.xml.end_element(xmloutput.TERSE)

        self.filehandle.flush()

    def __enter__(self):
        if self.filehandle is None:
            self.open()
        return self

    def __exit__(self, kind, value, traceback):
        self.close()


def main(argv):
    config_file = argv[1] if len(argv) > 1 else CONFIG_FILE

    cfg = {}
    try:
        with open(config_file, 'r') as f:
            cfg = json.load(f)
    except FileNotFoundError:
        print("Configuration file `{}' not found.  Please create it and try again.".format(config_file))
        return 1
    except json.JSONDecodeError as e:
        print("Configuration file `{}' is not valid JSON: {}".format(config_file, str(e)))
        return 1

    logging.basicConfig(level=cfg.get('log_level', 'WARNING').upper())

    if 'filename' not in cfg:
        print("Configuration file `{}' has no `filename' setting.".format(config_file))
        return 1

    with XmlLogFile(cfg) as log:
        for line in sys.stdin:
            log.write_line(line)

    return 0


if __name__ == '__main__':
    sys.exit(main(sys.argv))
