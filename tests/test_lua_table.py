"""
Test: Lua Table Parser
Testet Tokenizer und Parser für SavedVariables-Tabellen
"""
import unittest
import sys
from pathlib import Path

# Füge das Projektverzeichnis zum Python-Pfad hinzu
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.lua_table import (
    AssignmentNotFoundError,
    LuaParseError,
    LuaTableParser,
    parse_assignment,
    parse_assignments,
)


class TestLuaTableParser(unittest.TestCase):

    def test_named_fields_and_nested_sequence(self):
        text = 'BugGrabberDB = { session = 3, errors = { { message = "x", counter = 1 } } }'
        value = parse_assignment(text, 'BugGrabberDB')

        self.assertEqual(value, {
            'session': 3,
            'errors': [{'message': 'x', 'counter': 1}],
        })

    def test_bracket_keys_trailing_separators_and_comments(self):
        text = '''
-- SavedVariables
BugGrabberDB = {
    ["session"] = 12;
    ["errors"] = {
        {
            ["message"] = "boom",
        }, -- [1]
    },
    --[[ long
    comment ]]
    ["lastSanitation"] = 3,
}
'''
        value = parse_assignment(text, 'BugGrabberDB')

        self.assertEqual(value['session'], 12)
        self.assertEqual(value['lastSanitation'], 3)
        self.assertEqual(value['errors'], [{'message': 'boom'}])

    def test_string_escapes(self):
        self.assertEqual(parse_assignment('X = "a\\"b\\nc"', 'X'), 'a"b\nc')
        self.assertEqual(parse_assignment("X = 'it\\'s'", 'X'), "it's")
        self.assertEqual(parse_assignment('X = "\\65\\066\\x43"', 'X'), 'ABC')
        self.assertEqual(parse_assignment('X = "\\u{48}i"', 'X'), 'Hi')
        self.assertEqual(parse_assignment('X = "a\\\\b"', 'X'), 'a\\b')

    def test_long_strings(self):
        text = 'X = [==[\nline1]]\nline2]==]'
        self.assertEqual(parse_assignment(text, 'X'), 'line1]]\nline2')
        self.assertEqual(parse_assignment('X = [[plain]]', 'X'), 'plain')

    def test_numbers_and_keywords(self):
        value = parse_assignment('X = { -5, 0x10, 1.5, 2e3, true, false }', 'X')
        self.assertEqual(value, [-5, 16, 1.5, 2000.0, True, False])
        self.assertIsInstance(value[0], int)

    def test_nil_placeholders_in_sequence(self):
        value = parse_assignment('X = { { a = 1 }, nil, { a = 2 } }', 'X')
        self.assertEqual(value, [{'a': 1}, None, {'a': 2}])

    def test_integer_keys_with_holes_become_list(self):
        value = parse_assignment('X = { [1] = "a", [3] = "c" }', 'X')
        self.assertEqual(value, ['a', None, 'c'])

    def test_sparse_integer_keys_stay_dict(self):
        value = parse_assignment('X = { [1] = "a", [100] = "z" }', 'X')
        self.assertEqual(value, {1: 'a', 100: 'z'})

    def test_empty_table(self):
        self.assertEqual(parse_assignment('X = {}', 'X'), {})

    def test_multiple_assignments(self):
        values = parse_assignments('A = 1\nB = { x = "y" }\n')
        self.assertEqual(values, {'A': 1, 'B': {'x': 'y'}})
        self.assertEqual(parse_assignment('A = 1\nB = 2', 'B'), 2)

    def test_missing_assignment(self):
        with self.assertRaises(AssignmentNotFoundError):
            parse_assignment('SomethingElse = {}', 'BugGrabberDB')
        with self.assertRaises(AssignmentNotFoundError):
            parse_assignment('', 'BugGrabberDB')

    def test_malformed_content(self):
        malformed = [
            'BugGrabberDB = { session = }',
            'BugGrabberDB = { 1, 2',
            'BugGrabberDB = "unterminated',
            'BugGrabberDB = { @ }',
            'BugGrabberDB = 12abc',
            'BugGrabberDB = { [nil] = 1 }',
            'BugGrabberDB = { "a" "b" }',
            'return { }',
        ]
        for text in malformed:
            with self.subTest(text=text):
                with self.assertRaises(LuaParseError):
                    parse_assignment(text, 'BugGrabberDB')

    def test_nesting_limit(self):
        depth = LuaTableParser.MAX_DEPTH
        value = parse_assignment('X = ' + '{' * depth + '}' * depth, 'X')
        levels = 1
        while value:
            self.assertIsInstance(value, list)
            value = value[0]
            levels += 1
        self.assertEqual(levels, depth)

        with self.assertRaises(LuaParseError) as ctx:
            parse_assignment('X = ' + '{' * (depth + 1) + '}' * (depth + 1), 'X')
        self.assertIn('nested too deeply', str(ctx.exception))

    def test_error_reports_line(self):
        with self.assertRaises(LuaParseError) as ctx:
            parse_assignment('X = {\n  a = 1,\n  b = ,\n}', 'X')
        self.assertIn('line 3', str(ctx.exception))


if __name__ == '__main__':
    unittest.main()
