"""
Test: BugGrabber Reader
Testet das Einlesen von !BugGrabber.lua Dateien in ParsedRecords
"""
import unittest
import tempfile
import shutil
import sys
from pathlib import Path

# Füge das Projektverzeichnis zum Python-Pfad hinzu
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.buggrabber_reader import BugGrabberReader, read_buggrabber_db
from core.models import ErrorEntry, ParsedRecord, RecordFormatError


SAMPLE_SAVE_FILE = r'''
BugGrabberDB = {
	["session"] = 1234,
	["lastSanitation"] = 3,
	["errors"] = {
		{
			["message"] = "Interface/AddOns/Foo/Foo.lua:10: attempt to index a nil value",
			["time"] = "2024/01/02 12:00:00",
			["locals"] = "self = <table> {\n}\n",
			["stack"] = "[string \"@Interface/AddOns/Foo/Foo.lua\"]:10: in function <Foo.lua:8>\n[C]: ?",
			["session"] = 1233,
			["counter"] = 2,
		}, -- [1]
		nil, -- [2]
		{
			["message"] = "second",
			["session"] = 1234,
			["counter"] = 5,
		}, -- [3]
	},
}
'''


class TestBugGrabberReader(unittest.TestCase):
    def setUp(self):
        """Erstelle temporäre Test-Umgebung"""
        self.test_dir = tempfile.mkdtemp()

    def tearDown(self):
        """Räume temporäre Test-Umgebung auf"""
        shutil.rmtree(self.test_dir, ignore_errors=True)

    def _write(self, content: str, name: str = '!BugGrabber.lua') -> str:
        path = Path(self.test_dir) / name
        path.write_text(content, encoding='utf-8')
        return str(path)

    def test_reads_sample_save_file(self):
        record = read_buggrabber_db(self._write(SAMPLE_SAVE_FILE))

        self.assertIsNotNone(record)
        self.assertEqual(record.session, 1234)
        self.assertEqual(record.last_sanitation, 3)
        self.assertEqual(len(record.errors), 3)
        self.assertIsNone(record.errors[1])

        first = record.errors[0]
        self.assertEqual(first.counter, 2)
        self.assertEqual(first.session, 1233)
        self.assertEqual(first.time, "2024/01/02 12:00:00")
        self.assertTrue(first.stack.startswith('[string "@Interface/AddOns/Foo/Foo.lua"]:10:'))
        self.assertIn('\n[C]: ?', first.stack)

    def test_minimal_record(self):
        path = self._write('BugGrabberDB = { session = 3, errors = { { message = "x", counter = 1 } } }')
        record = BugGrabberReader().read(path)

        self.assertEqual(record, ParsedRecord(
            session=3,
            errors=(ErrorEntry(message='x', counter=1),),
        ))

    def test_parsing_is_idempotent(self):
        path = self._write(SAMPLE_SAVE_FILE)
        reader = BugGrabberReader()

        first = reader.read(path)
        second = reader.read(path)

        self.assertIsNot(first, second)
        self.assertEqual(first, second)

    def test_malformed_content_yields_no_record(self):
        path = self._write('BugGrabberDB = { session = }')

        with self.assertLogs('core.buggrabber_reader', level='ERROR') as logs:
            record = BugGrabberReader().read(path)

        self.assertIsNone(record)
        self.assertIn('Error reading BugGrabber file', logs.output[0])

    def test_missing_assignment_yields_no_record(self):
        path = self._write('SomeOtherAddonDB = { session = 1 }')

        with self.assertLogs('core.buggrabber_reader', level='ERROR'):
            self.assertIsNone(BugGrabberReader().read(path))

    def test_unreadable_file_yields_no_record(self):
        missing = str(Path(self.test_dir) / 'missing' / '!BugGrabber.lua')

        with self.assertLogs('core.buggrabber_reader', level='ERROR'):
            self.assertIsNone(BugGrabberReader().read(missing))

    def test_wrong_shape_yields_no_record(self):
        path = self._write('BugGrabberDB = "not a table"')

        with self.assertLogs('core.buggrabber_reader', level='ERROR'):
            self.assertIsNone(BugGrabberReader().read(path))

    def test_deeply_nested_literal_yields_no_record(self):
        path = self._write('BugGrabberDB = ' + '{' * 3000 + '}' * 3000)

        with self.assertLogs('core.buggrabber_reader', level='ERROR') as logs:
            record = BugGrabberReader().read(path)

        self.assertIsNone(record)
        self.assertIn('nested too deeply', logs.output[0])

    def test_invalid_number_string_yields_no_record(self):
        path = self._write('BugGrabberDB = { session = "--5" }')

        with self.assertLogs('core.buggrabber_reader', level='ERROR'):
            self.assertIsNone(BugGrabberReader().read(path))

    def test_sparse_error_table_keeps_entries(self):
        path = self._write(
            'BugGrabberDB = { session = 2, errors = { [5] = { message = "x", counter = 1 } } }'
        )
        record = BugGrabberReader().read(path)

        self.assertIsNotNone(record)
        self.assertEqual(record.session, 2)
        self.assertEqual(record.errors, (ErrorEntry(message='x', counter=1),))

    def test_custom_variable_name(self):
        path = self._write('BugSackDB = { session = 7 }')
        self.assertEqual(BugGrabberReader('BugSackDB').read(path).session, 7)


class TestParsedRecord(unittest.TestCase):

    def test_empty_table(self):
        self.assertEqual(ParsedRecord.from_table({}), ParsedRecord())
        self.assertEqual(ParsedRecord.from_table({'errors': {}}).errors, ())

    def test_integer_keyed_errors_ordered_by_key(self):
        record = ParsedRecord.from_table({'errors': {40: {'counter': 2}, 7: {'counter': 1}, 90: 'junk'}})
        self.assertEqual(record.errors, (ErrorEntry(counter=1), ErrorEntry(counter=2), None))

    def test_non_table_entries_become_placeholders(self):
        record = ParsedRecord.from_table({'errors': [{'message': 'a'}, 'junk', None]})
        self.assertEqual(record.errors, (ErrorEntry(message='a'), None, None))

    def test_numeric_strings_and_floats(self):
        entry = ErrorEntry.from_table({'counter': 3.0, 'session': '12', 'message': 42})
        self.assertEqual(entry.counter, 3)
        self.assertEqual(entry.session, 12)
        self.assertEqual(entry.message, '42')

    def test_invalid_shapes(self):
        with self.assertRaises(RecordFormatError):
            ParsedRecord.from_table([1, 2])
        with self.assertRaises(RecordFormatError):
            ParsedRecord.from_table({'errors': 'x'})
        with self.assertRaises(RecordFormatError):
            ParsedRecord.from_table({'session': 'abc'})
        with self.assertRaises(RecordFormatError):
            ParsedRecord.from_table({'session': '--5'})
        with self.assertRaises(RecordFormatError):
            ParsedRecord.from_table({'errors': {'first': {}}})

    def test_to_dict_uses_save_file_names(self):
        record = ParsedRecord(session=1, last_sanitation=2, errors=(ErrorEntry(counter=1), None))
        data = record.to_dict()

        self.assertEqual(data['lastSanitation'], 2)
        self.assertEqual(data['errors'][0]['counter'], 1)
        self.assertIsNone(data['errors'][1])


if __name__ == '__main__':
    unittest.main()
