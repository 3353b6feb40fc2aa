"""
Shared fixtures for the vivid test suite: a layout using every directive
once, its exact bytecode, and a small HTML page.
"""

from vivid.directives import Opcode

# leading and trailing newline on purpose: 16 lines, 13 directives
LAYOUT = "\n".join([
    "",
    "layout\tvivid 1.0",
    "# commented line",
    "follow\txpath",
    "select\tcss.selector",
    "bundle\txpath",
    "label\thuman readable text",
    "extract\tregex",
    "replace\told\tnew",
    "insert\tplaceholder\ttext with placeholder",
    "glue\tprefix",
    "style\tcss property",
    "keep\tregex",
    "drop\tregex",
    "prompt\tcommand",
    "",
])

HEADER = b"\x08vivid 1.0\x00\x00"

BYTECODE = (
    HEADER
    + b"\x31xpath\x00\x00"
    + b"\x32css.selector\x00\x00"
    + b"\x33xpath\x00\x00"
    + b"\xachuman readable text\x00\x00"
    + b"\x51regex\x00\x00"
    + b"\x52old\x00new\x00\x00"
    + b"\x54placeholder\x00text with placeholder\x00\x00"
    + b"\x55prefix\x00\x00"
    + b"\x91css property\x00\x00"
    + b"\x57regex\x00\x00"
    + b"\x56regex\x00\x00"
    + b"\xddcommand\x00\x00"
)

PROGRAM = [
    (Opcode.FOLLOW, ("xpath",)),
    (Opcode.SELECT, ("css.selector",)),
    (Opcode.BUNDLE, ("xpath",)),
    (Opcode.LABEL, ("human readable text",)),
    (Opcode.EXTRACT, ("regex",)),
    (Opcode.REPLACE, ("old", "new")),
    (Opcode.INSERT, ("placeholder", "text with placeholder")),
    (Opcode.GLUE, ("prefix",)),
    (Opcode.STYLE, ("css property",)),
    (Opcode.KEEP, ("regex",)),
    (Opcode.DROP, ("regex",)),
    (Opcode.PROMPT, ("command",)),
]

PAGE = """
<html>
<head>
    <style type="text/css">
        h1 { color: green; }
        /* h1 { color: blue; } */
        article h2, .muted { color: gray; font-size: 12px }
    </style>
</head>
<body>
    <h1>this is a title</h1>
    <ul>
        <li>this is an item in a list (1)</li>
        <li>this is an item in a list (2)</li>
        <li style="color: red">this is an item in a list (3)</li>
    </ul>
    <table>
        <tr>
            <td>
                <a href="#external-link">link 1</a>
            </td>
        </tr>
    </table>
    <article>
        <img src="#image-1" />
        <h2>subtitle 1</h2>
        <a href="#subtitle-link-1">link 2.1</a>
    </article>
    <article>
        <h2>subtitle 2</h2>
        <a href="#subtitle-link-2">link 2.2</a>
    </article>
    <article>
        <img src="#image-3" />
        <h2>subtitle 3</h2>
    </article>
</body>
</html>"""

# the end-to-end sample, indented like a script embedded in another file
EXTRACTION = "\n".join([
    "        layout\tvivid 1.0",
    "        # get all hrefs from links",
    "        follow\t//a/@href",
    "        remove\t#",
    "        label\tlinks",
    "        # get all subtitles",
    "        select\th2",
    "        replace\tsubtitle\\s\th2-",
    "        label\tsubtitles",
    "        # find all images",
    "        follow\t//img/@src",
    "        insert\t~\t<video data-src=\"~\" />",
    "        label\timage tags",
])
