import os

from bundlestream.testcase import BundleTestCase
from bundlestream.error import IndexResolutionError, UnsupportedContentError, ParseError, EntryOrderError
from bundlestream.bundle.props import BundleProps
from bundlestream.bundle.content import BytesContent
from bundlestream.bundle.entry import BundleInfoEntry, BundlePropsEntry, FileEntry, END
from bundlestream.bundle.pipeline import pipe
from bundlestream.formats.directory import DirectorySource
from bundlestream.formats.web import WebSink, get_template, DATA_DIR


class TestWebSink(BundleTestCase):

    async def asyncSetUp(self):
        await super().asyncSetUp()
        self.root = self.make_temp_dir()
        self.target = os.path.join(self.make_temp_dir(), 'site')
        self.write_file(os.path.join(self.root, 'index.html'), b'<html>book</html>')
        self.write_file(os.path.join(self.root, 'img', 'cover.jpg'), b'jpeg')

    def test_templates(self):
        self.assertEqual(get_template('OEBPS/content.opf'), 'epub')
        self.assertEqual(get_template('index.HTML'), 'html')
        self.assertEqual(get_template('a.htm'), 'html')
        self.assertEqual(get_template('a.xhtml'), 'html')
        self.assertEqual(get_template('index.pdf'), 'pdf')
        with self.assertRaises(UnsupportedContentError):
            get_template('book.mobi')

    async def test_export(self):
        source = DirectorySource(self.loop, self.root, props={'main_file': 'index.html'})
        self.assertEqual(await pipe(source, WebSink(self.loop, self.target)), 2)
        with open(os.path.join(self.target, DATA_DIR, 'index.html'), 'rb') as f:
            self.assertEqual(f.read(), b'<html>book</html>')
        with open(os.path.join(self.target, DATA_DIR, 'img', 'cover.jpg'), 'rb') as f:
            self.assertEqual(f.read(), b'jpeg')
        with open(os.path.join(self.target, 'index.html'), encoding='utf-8') as f:
            page = f.read()
        self.assertIn('_data/index.html', page)
        self.assertNotIn('$main_file', page)

    async def export_single_file(self, main_file: str) -> str:
        sink = WebSink(self.loop, self.target)
        await sink.write(BundleInfoEntry(BundleProps()))
        await sink.write(BundlePropsEntry(BundleProps({'main_file': main_file})))
        await sink.write(FileEntry(main_file, BytesContent(self.loop, b'<html/>'), None))
        await sink.write(END)
        await sink.finished
        with open(os.path.join(self.target, 'index.html'), encoding='utf-8') as f:
            return f.read()

    async def test_main_file_is_escaped_in_markup(self):
        page = await self.export_single_file('a"><script>alert(1)</script>.html')
        self.assertNotIn('<script>alert(1)', page)
        self.assertIn('src="_data/a&quot;&gt;&lt;script&gt;alert(1)&lt;/script&gt;.html"', page)

    async def test_main_file_is_escaped_in_script(self):
        page = await self.export_single_file('x"</script><b>content.opf')
        self.assertNotIn('</script><b>', page)
        self.assertIn('ePub("_data/x\\"\\u003c/script\\u003e\\u003cb\\u003econtent.opf")', page)

    async def test_missing_main_file(self):
        sink = WebSink(self.loop, self.target)
        with self.assertRaises(IndexResolutionError):
            await pipe(DirectorySource(self.loop, self.root), sink)
        with self.assertRaises(IndexResolutionError):
            await sink.finished

    async def test_unsupported_main_file(self):
        source = DirectorySource(self.loop, self.root, props={'main_file': 'img/cover.jpg'})
        with self.assertRaises(UnsupportedContentError):
            await pipe(source, WebSink(self.loop, self.target))

    async def test_paths_stay_inside_export(self):
        sink = WebSink(self.loop, self.target)
        await sink.write(BundleInfoEntry(BundleProps()))
        await sink.write(BundlePropsEntry(BundleProps({'main_file': 'index.html'})))
        content = BytesContent(self.loop, b'evil')
        with self.assertRaises(ParseError):
            await sink.write(FileEntry('../../escape.txt', content))
        self.assertFalse(os.path.exists(os.path.join(self.target, '..', 'escape.txt')))
        with self.assertRaises(EntryOrderError):
            await sink.write(END)
