"""Extension to file-type description table."""
from __future__ import annotations

import logging
from typing import NamedTuple, Optional

logger = logging.getLogger(__name__)

DEFAULT_FILE_TYPE = "File"
FOLDER_TYPE = "Folder"


class FileType(NamedTuple):
    description: str
    extensions: tuple[str, ...]


FILE_TYPES: tuple[FileType, ...] = (
    FileType("Word Document", ("doc", "docm", "docx")),
    FileType("Word Template", ("dot", "dotx", "dotm")),
    FileType("Excel Spreadsheet", ("xls", "xlsx", "xlsm", "xlsb")),
    FileType("Excel Template", ("xlt", "xltx", "xltm", "xlw")),
    FileType("PowerPoint Presentation", ("ppt", "pptx", "pptm")),
    FileType("PowerPoint Template", ("pot", "potx", "potm")),
    FileType("OpenDocument Text", ("odt",)),
    FileType("OpenDocument Spreadsheet", ("ods",)),
    FileType("OpenDocument Presentation", ("odp",)),
    FileType("PDF Document", ("pdf",)),
    FileType("PDF Data File", ("fdf", "xfdf", "pdx", "xdp")),
    FileType("JPEG Image", ("jpg", "jpeg")),
    FileType("PNG Image", ("png",)),
    FileType("GIF Image", ("gif",)),
    FileType("Bitmap Image", ("bmp",)),
    FileType("SVG Vector Image", ("svg",)),
    FileType("WebP Image", ("webp",)),
    FileType("TIFF Image", ("tiff", "tif")),
    FileType("Icon File", ("ico",)),
    FileType("Photoshop Document", ("psd", "psb", "pdd")),
    FileType("Illustrator Document", ("ai", "ait", "art", "aip")),
    FileType("InDesign Document", ("indd", "indl", "indt", "indb")),
    FileType("MP4 Video", ("mp4", "mpeg4")),
    FileType("WebM Video", ("webm",)),
    FileType("AVI Video", ("avi",)),
    FileType("QuickTime Video", ("mov", "qt")),
    FileType("Matroska Video", ("mkv",)),
    FileType("Flash Video", ("flv",)),
    FileType("Windows Media Video", ("wmv",)),
    FileType("MPEG Video", ("mpeg", "mpg")),
    FileType("M4V Video", ("m4v",)),
    FileType("3GP Video", ("3gp",)),
    FileType("OGG Video", ("ogv",)),
    FileType("MP3 Audio", ("mp3",)),
    FileType("WAV Audio", ("wav",)),
    FileType("OGG Audio", ("ogg",)),
    FileType("FLAC Audio", ("flac",)),
    FileType("AAC Audio", ("aac",)),
    FileType("M4A Audio", ("m4a",)),
    FileType("Windows Media Audio", ("wma",)),
    FileType("AIFF Audio", ("aiff",)),
    FileType("Opus Audio", ("opus",)),
    FileType("MIDI Audio", ("mid", "midi")),
    FileType("HTML Document", ("html", "htm", "xhtml")),
    FileType("CSS Stylesheet", ("css",)),
    FileType("Sass Stylesheet", ("scss", "sass")),
    FileType("Less Stylesheet", ("less",)),
    FileType("JavaScript File", ("js",)),
    FileType("React JSX File", ("jsx",)),
    FileType("TypeScript File", ("ts",)),
    FileType("React TSX File", ("tsx",)),
    FileType("JSON File", ("json",)),
    FileType("JSON with Comments", ("jsonc", "json5")),
    FileType("PHP File", ("php",)),
    FileType("ASP.NET File", ("asp", "aspx")),
    FileType("JSP File", ("jsp",)),
    FileType("Python File", ("py",)),
    FileType("Java File", ("java",)),
    FileType("Java Class File", ("class",)),
    FileType("Java Archive", ("jar",)),
    FileType("C File", ("c",)),
    FileType("C++ File", ("cpp", "cc", "cxx")),
    FileType("C/C++ Header", ("h", "hpp")),
    FileType("C# File", ("cs",)),
    FileType("Go File", ("go",)),
    FileType("Rust File", ("rs",)),
    FileType("Ruby File", ("rb",)),
    FileType("Swift File", ("swift",)),
    FileType("Kotlin File", ("kt", "kts")),
    FileType("ZIP Archive", ("zip",)),
    FileType("RAR Archive", ("rar",)),
    FileType("7-Zip Archive", ("7z",)),
    FileType("TAR Archive", ("tar",)),
    FileType("GZip Archive", ("gz", "gzip")),
    FileType("BZip2 Archive", ("bz2", "bzip2")),
    FileType("XZ Archive", ("xz",)),
    FileType("Compressed TAR", ("tgz", "tar.gz", "tar.bz2", "tar.xz")),
    FileType("Zstandard Archive", ("zst",)),
    FileType("Text File", ("txt",)),
    FileType("Markdown Document", ("md", "markdown")),
    FileType("Rich Text Format", ("rtf",)),
    FileType("CSV Spreadsheet", ("csv",)),
    FileType("XML Document", ("xml",)),
    FileType("YAML File", ("yaml", "yml")),
    FileType("TOML File", ("toml",)),
    FileType("Configuration File", ("ini", "cfg", "conf")),
    FileType("Log File", ("log",)),
    FileType("Windows Executable", ("exe", "com")),
    FileType("Windows Installer", ("msi",)),
    FileType("macOS Application", ("app",)),
    FileType("macOS Disk Image", ("dmg",)),
    FileType("macOS Package", ("pkg",)),
    FileType("Debian Package", ("deb",)),
    FileType("RPM Package", ("rpm",)),
    FileType("AppImage", ("appimage",)),
    FileType("Android Package", ("apk",)),
    FileType("Shell Script", ("sh", "bash")),
    FileType("Batch File", ("bat", "cmd")),
    FileType("PowerShell Script", ("ps1",)),
    FileType("SQL Script", ("sql",)),
    FileType("SQLite Database", ("sqlite", "db")),
    FileType("Access Database", ("mdb", "accdb")),
    FileType("TrueType Font", ("ttf",)),
    FileType("OpenType Font", ("otf",)),
    FileType("Web Font", ("woff",)),
    FileType("Web Font 2.0", ("woff2",)),
    FileType("Embedded Font", ("eot",)),
    FileType("3D Object", ("obj",)),
    FileType("FBX 3D Model", ("fbx",)),
    FileType("glTF 3D Model", ("glb", "gltf")),
    FileType("Windows Library", ("dll",)),
    FileType("Shared Object", ("so",)),
    FileType("Object File", ("o",)),
    FileType("C/C++ Library File", ("lib",)),
    FileType("macOS Library", ("dylib",)),
    FileType("Disk Image", ("iso",)),
    FileType("Binary Data", ("dat", "bin")),
    FileType("Properties File", ("properties", "prop")),
)

_BY_EXTENSION: dict[str, FileType] = {}
for _file_type in FILE_TYPES:
    for _extension in _file_type.extensions:
        _BY_EXTENSION.setdefault(_extension, _file_type)

TEXT_EXTENSIONS = frozenset({
    "txt", "md", "json", "xml", "csv", "yaml", "yml", "toml", "properties", "ini", "cfg",
    "conf", "log", "sh", "bash", "bat", "cmd", "ps1", "sql", "html", "htm", "xhtml", "css",
    "scss", "sass", "less", "js", "jsx", "ts", "tsx", "php", "py", "java", "c", "cpp", "h",
    "hpp", "cs", "go", "rs", "rb", "swift", "kt", "kts",
})


def _basename(path: str) -> str:
    return path.replace("\\", "/").rsplit("/", 1)[-1].strip().lower()


def get_file_extension(path: str) -> Optional[str]:
    """Return the known extension of ``path``.

    The full multi-part suffix (``tar.gz``) wins over the last suffix
    (``gz``). When neither is known the multi-part suffix is returned as is;
    ``None`` means the name carries no dot at all.
    """
    filename = _basename(path)
    if not filename or "." not in filename:
        return None
    multi_extension = filename.split(".", 1)[1]
    if multi_extension in _BY_EXTENSION:
        return multi_extension
    single_extension = filename.rsplit(".", 1)[1]
    if single_extension in _BY_EXTENSION:
        return single_extension
    logger.debug("No file type registered for %s", filename)
    return multi_extension


def get_file_type(path: str) -> Optional[FileType]:
    extension = get_file_extension(path)
    if not extension:
        return None
    return _BY_EXTENSION.get(extension)


def describe_file(filename: str, *, is_directory: bool = False) -> str:
    if is_directory:
        return FOLDER_TYPE
    file_type = get_file_type(filename)
    return file_type.description if file_type else DEFAULT_FILE_TYPE


def is_text_file(path: str) -> bool:
    file_type = get_file_type(path)
    if file_type is None:
        return False
    return any(extension in TEXT_EXTENSIONS for extension in file_type.extensions)
