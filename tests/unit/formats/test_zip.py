import os
import zipfile

from bundlestream.testcase import BundleTestCase
from bundlestream.conf import Config
from bundlestream.error import IndexResolutionError, ParseError, NotFoundError
from bundlestream.bundle.props import BundleProps
from bundlestream.bundle.source import SourceState
from bundlestream.bundle.pipeline import pipe
from bundlestream.formats.zip import ZipSource, ZipSink
from bundlestream.formats.directory import DirectorySource


class TestZipSource(BundleTestCase):

    async def asyncSetUp(self):
        await super().asyncSetUp()
        self.tmp = self.make_temp_dir()

    def make_zip(self, name, members):
        path = os.path.join(self.tmp, name)
        with zipfile.ZipFile(path, 'w') as archive:
            for member, data in members.items():
                archive.writestr(member, data)
        return path

    async def test_resolves_index_html(self):
        path = self.make_zip('site.zip', {'index.html': b'<html/>', 'img/': b'', 'img/logo.png': b'png'})
        source = ZipSource(self.loop, path)
        await source.wait_ready()
        self.assertEqual(source.get_props()['main_file'], 'index.html')
        self.assertEqual(source.get_info(), BundleProps())
        self.assertEqual(source.get_files(), ['index.html', 'img/logo.png'])
        await source.close()

    async def test_prefers_index_pdf(self):
        path = self.make_zip('doc.zip', {'index.html': b'<html/>', 'index.pdf': b'%PDF'})
        source = ZipSource(self.loop, path)
        await source.wait_ready()
        self.assertEqual(source.get_props()['main_file'], 'index.pdf')
        await source.close()

    async def test_no_index_file(self):
        path = self.make_zip('other.zip', {'readme.txt': b'hi'})
        source = ZipSource(self.loop, path)
        with self.assertRaises(IndexResolutionError):
            await source.wait_ready()
        self.assertIs(source.state, SourceState.FAILED)
        with self.assertRaises(IndexResolutionError):
            source.get_props()

    async def test_caller_props_and_info(self):
        path = self.make_zip('other.zip', {'readme.txt': b'hi'})
        source = ZipSource(self.loop, path, info={'title': 'Readme'}, props={'main_file': 'readme.txt'})
        info, props, files = await self.read_bundle(source)
        self.assertEqual(info, BundleProps({'title': 'Readme'}))
        self.assertEqual(props, BundleProps({'main_file': 'readme.txt'}))
        self.assertEqual(files, [('readme.txt', b'hi', BundleProps({'size': 2}))])

    async def test_corrupt_archive(self):
        path = os.path.join(self.tmp, 'broken.zip')
        self.write_file(path, b'this is not a zip archive')
        source = ZipSource(self.loop, path)
        with self.assertRaises(ParseError):
            await source.wait_ready()

    async def test_missing_archive(self):
        with self.assertRaises(NotFoundError):
            ZipSource(self.loop, os.path.join(self.tmp, 'missing.zip'))


class TestZipSink(BundleTestCase):

    async def test_directory_to_zip_and_back(self):
        root = self.make_temp_dir()
        self.write_file(os.path.join(root, 'index.html'), b'<html/>' * 1000)
        self.write_file(os.path.join(root, 'js', 'app.js'), b'let a = 1;')
        target = os.path.join(self.make_temp_dir(), 'site.zip')
        conf = Config(config='', zip_compression='stored', chunk_size=1024)

        self.assertEqual(await pipe(DirectorySource(self.loop, root, conf=conf), ZipSink(self.loop, target, conf=conf)), 2)
        with zipfile.ZipFile(target) as archive:
            self.assertEqual(archive.namelist(), ['index.html', 'js/app.js'])
            self.assertEqual(archive.getinfo('index.html').compress_type, zipfile.ZIP_STORED)

        info, props, files = await self.read_bundle(ZipSource(self.loop, target, conf=conf))
        self.assertEqual(props, BundleProps({'main_file': 'index.html'}))
        self.assertEqual(files, [
            ('index.html', b'<html/>' * 1000, BundleProps({'size': 7000})),
            ('js/app.js', b'let a = 1;', BundleProps({'size': 10})),
        ])
