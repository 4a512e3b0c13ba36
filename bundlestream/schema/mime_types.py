import os

types_map = {
    # http://www.iana.org/assignments/media-types
    # Types that show up as the main file of a bundle or inside e-book and web packages
    '.azw': 'application/vnd.amazon.ebook',
    '.azw3': 'application/vnd.amazon.mobi8-ebook',
    '.bmp': 'image/bmp',
    '.cbz': 'application/vnd.comicbook+zip',
    '.css': 'text/css',
    '.csv': 'text/csv',
    '.djvu': 'image/vnd.djvu',
    '.doc': 'application/msword',
    '.docx': 'application/vnd.openxmlformats-officedocument.wordprocessingml.document',
    '.epub': 'application/epub+zip',
    '.fb2': 'application/x-fictionbook+xml',
    '.gif': 'image/gif',
    '.htm': 'text/html',
    '.html': 'text/html',
    '.jpeg': 'image/jpeg',
    '.jpg': 'image/jpeg',
    '.js': 'application/javascript',
    '.json': 'application/json',
    '.m4a': 'audio/mp4',
    '.md': 'text/markdown',
    '.mobi': 'application/x-mobipocket-ebook',
    '.mp3': 'audio/mpeg',
    '.mp4': 'video/mp4',
    '.ncx': 'application/x-dtbncx+xml',
    '.odt': 'application/vnd.oasis.opendocument.text',
    '.oga': 'audio/ogg',
    '.ogg': 'audio/ogg',
    '.opf': 'application/oebps-package+xml',
    '.otf': 'font/otf',
    '.pdf': 'application/pdf',
    '.png': 'image/png',
    '.rtf': 'application/rtf',
    '.svg': 'image/svg+xml',
    '.tif': 'image/tiff',
    '.tiff': 'image/tiff',
    '.ttf': 'font/ttf',
    '.txt': 'text/plain',
    '.webm': 'video/webm',
    '.webp': 'image/webp',
    '.woff': 'font/woff',
    '.woff2': 'font/woff2',
    '.xhtml': 'application/xhtml+xml',
    '.xml': 'text/xml',
    '.zip': 'application/zip',
}

DEFAULT_MEDIA_TYPE = 'application/octet-stream'


def guess_media_type(path):
    _, ext = os.path.splitext(path)
    return types_map.get(ext.strip().lower(), DEFAULT_MEDIA_TYPE)
