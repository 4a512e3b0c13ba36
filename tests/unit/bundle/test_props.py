import unittest

from bundlestream.error import ParseError, InvalidPropertyValueError
from bundlestream.bundle.props import BundleProps, property_type


class TestBundleProps(unittest.TestCase):

    def test_canonical_text(self):
        props = BundleProps({'main_file': 'index.html', 'size': 12, 'ratio': 0.5, 'public': True})
        self.assertEqual(
            props.to_json(),
            '{"main_file":{"type":"string","value":"index.html"},'
            '"size":{"type":"int","value":12},'
            '"ratio":{"type":"double","value":0.5},'
            '"public":{"type":"bool","value":true}}'
        )
        self.assertEqual(props.to_bytes(), props.to_json().encode())

    def test_empty(self):
        self.assertEqual(BundleProps().to_json(), '{}')
        self.assertEqual(BundleProps.from_json('{}'), BundleProps())
        self.assertEqual(len(BundleProps()), 0)

    def test_parse_canonical_text(self):
        props = BundleProps.from_json(
            b'{"title":{"type":"string","value":"\xc3\xa9t\xc3\xa9"},"pages":{"type":"int","value":300}}'
        )
        self.assertEqual(props['title'], 'été')
        self.assertEqual(props.get('pages'), 300)
        self.assertIsNone(props.get('missing'))
        self.assertEqual(list(props), ['title', 'pages'])
        self.assertEqual(props.to_json(), '{"title":{"type":"string","value":"été"},"pages":{"type":"int","value":300}}')

    def test_round_trip_through_canonical_text(self):
        for mapping in ({}, {'a': 'b'}, {'n': -3, 'f': 1.25, 'b': False, 's': ''}, {'unicode': '日本語'}):
            props = BundleProps.from_mapping(mapping)
            self.assertEqual(BundleProps.from_json(props.to_json()), props)

    def test_whole_double_serializes_as_int(self):
        props = BundleProps({'version': 2.0})
        self.assertEqual(props.to_json(), '{"version":{"type":"int","value":2}}')
        self.assertEqual(BundleProps.from_json(props.to_json())['version'], 2)
        self.assertEqual(property_type(2.0), 'int')
        self.assertEqual(property_type(2.5), 'double')

    def test_bool_is_not_int(self):
        self.assertEqual(property_type(True), 'bool')
        self.assertEqual(BundleProps({'flag': False}).to_json(), '{"flag":{"type":"bool","value":false}}')

    def test_malformed_text(self):
        for text in ('', 'not json', '[]', '{"a":"b"}', '{"a":{"type":"string"}}',
                     '{"a":{"type":"blob","value":"x"}}', '{"a":{"type":"int","value":"1"}}',
                     '{"a":{"type":"bool","value":1}}', b'\xff\xfe'):
            with self.assertRaises(ParseError, msg=repr(text)):
                BundleProps.from_json(text)

    def test_equality_is_canonical_text(self):
        self.assertEqual(BundleProps({'a': 1, 'b': 2}), BundleProps({'a': 1, 'b': 2}))
        self.assertNotEqual(BundleProps({'a': 1, 'b': 2}), BundleProps({'b': 2, 'a': 1}))
        self.assertNotEqual(BundleProps({'a': 1}), BundleProps({'a': '1'}))
        self.assertNotEqual(BundleProps({'a': 1}), {'a': 1})

    def test_set_rejects_unsupported_values(self):
        props = BundleProps()
        with self.assertRaises(InvalidPropertyValueError):
            props.set('list', [1, 2])
        with self.assertRaises(InvalidPropertyValueError):
            props.set('none', None)
        with self.assertRaises(InvalidPropertyValueError):
            BundleProps({1: 'a'})
        props.set('ok', 'yes')
        self.assertIn('ok', props)

    def test_merge_builds_new_instance(self):
        info = BundleProps({'title': 'Book', 'lang': 'en'})
        merged = info.merge({'lang': 'fr', 'publisher': 'Someone'})
        self.assertEqual(merged.to_dict(), {'title': 'Book', 'lang': 'fr', 'publisher': 'Someone'})
        self.assertEqual(info.to_dict(), {'title': 'Book', 'lang': 'en'})
        self.assertEqual(info.merge(None), info)
        self.assertIsNot(info.merge(None), info)
        self.assertEqual(info.merge(BundleProps({'title': 'Other'}))['title'], 'Other')

    def test_from_mapping(self):
        props = BundleProps({'a': 1})
        self.assertEqual(BundleProps.from_mapping(props), props)
        self.assertIsNot(BundleProps.from_mapping(props), props)
        with self.assertRaises(TypeError):
            BundleProps.from_mapping(['a'])
