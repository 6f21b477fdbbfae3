"""Built-in pattern catalog entries.

Defines statement patterns for markdown (including MDX comments), HTML and
AsciiDoc sources, and the markup rules which detect steps from markdown
prose. Entries are addressed by a versioned key (`markdown_1_0`) or by
a keyword pointing at the current version (`markdown`).
"""

_ASCIIDOC = {
    'name': 'asciidoc',
    'extensions': ['adoc', 'asciidoc', 'asc'],
    'inlineStatements': {
        'testStart': [r'\/\/\s+\(\s*test\s+([\s\S]*?)\s*\)'],
        'testEnd': [r'\/\/\s+\(\s*test end\s*\)'],
        'ignoreStart': [r'\/\/\s+\(\s*test ignore start\s*\)'],
        'ignoreEnd': [r'\/\/\s+\(\s*test ignore end\s*\)'],
        'step': [r'\/\/\s+\(\s*step\s+([\s\S]*?)\s*\)'],
    },
    'markup': [],
}

_HTML = {
    'name': 'html',
    'extensions': ['html', 'htm'],
    'inlineStatements': {
        'testStart': [r'<!--\s*test\s+?([\s\S]*?)\s*-->'],
        'testEnd': [r'<!--\s*test end\s*([\s\S]*?)\s*-->'],
        'ignoreStart': [r'<!--\s*test ignore start\s*-->'],
        'ignoreEnd': [r'<!--\s*test ignore end\s*-->'],
        'step': [r'<!--\s*step\s+?([\s\S]*?)\s*-->'],
    },
    'markup': [],
}

_MARKDOWN = {
    'name': 'markdown',
    'extensions': ['md', 'markdown', 'mdx'],
    'inlineStatements': {
        'testStart': [
            r'{\/\*\s*test\s+?([\s\S]*?)\s*\*\/}',
            r'<!--\s*test\s*([\s\S]*?)\s*-->',
            r'\[comment\]:\s+#\s+\(test\s*(.*?)\s*\)',
            r'\[comment\]:\s+#\s+\(test start\s*(.*?)\s*\)',
        ],
        'testEnd': [
            r'{\/\*\s*test end\s*\*\/}',
            r'<!--\s*test end\s*([\s\S]*?)\s*-->',
            r'\[comment\]:\s+#\s+\(test end\)',
        ],
        'ignoreStart': [
            r'{\/\*\s*test ignore start\s*\*\/}',
            r'<!--\s*test ignore start\s*-->',
        ],
        'ignoreEnd': [
            r'{\/\*\s*test ignore end\s*\*\/}',
            r'<!--\s*test ignore end\s*-->',
        ],
        'step': [
            r'{\/\*\s*step\s+?([\s\S]*?)\s*\*\/}',
            r'<!--\s*step\s*([\s\S]*?)\s*-->',
            r'\[comment\]:\s+#\s+\(step\s*(.*?)\s*\)',
        ],
    },
    'markup': [
        {
            'name': 'checkHyperlink',
            'regex': [
                r'(?<!\!)\[[^\]]+\]\(\s*(https?:\/\/[^\s)]+)(?:\s+"[^"]*")?\s*\)',
            ],
            'actions': ['checkLink'],
        },
        {
            'name': 'clickOnscreenText',
            'regex': [
                r'\b(?:[Cc]lick|[Tt]ap|[Ll]eft-click|[Cc]hoose|[Ss]elect|[Cc]heck)\b'
                r'\s+\*\*((?:(?!\*\*).)+)\*\*',
            ],
            'actions': ['click'],
        },
        {
            'name': 'findOnscreenText',
            'regex': [r'\*\*((?:(?!\*\*).)+)\*\*'],
            'actions': ['find'],
        },
        {
            'name': 'goToUrl',
            'regex': [
                r'\b(?:[Gg]o\s+to|[Oo]pen|[Nn]avigate\s+to|[Vv]isit|[Aa]ccess|'
                r'[Pp]roceed\s+to|[Ll]aunch)\b\s+\[[^\]]+\]\(\s*(https?:\/\/[^\s)]+)'
                r'(?:\s+"[^"]*")?\s*\)',
            ],
            'actions': ['goTo'],
        },
        {
            'name': 'screenshotImage',
            'regex': [
                r'!\[[^\]]*\]\(\s*([^\s)]+)(?:\s+"[^"]*")?\s*\)\s*'
                r'\{(?=[^}]*\.screenshot)[^}]*\}',
            ],
            'actions': ['screenshot'],
        },
        {
            'name': 'typeText',
            'regex': [r'\b(?:press|enter|type)\b\s+"([^"]+)"'],
            'actions': ['type'],
        },
        {
            'name': 'httpRequestFormat',
            'regex': [
                r'```(?:http)?\r?\n([A-Z]+)\s+([^\s]+)(?:\s+HTTP\/[\d.]+)?\r?\n'
                r'((?:[^\s]+:\s+[^\s]+\r?\n)*)?(?:\s+([\s\S]*?)\r?\n+)?```',
            ],
            'actions': [
                {
                    'httpRequest': {
                        'method': '$1',
                        'url': '$2',
                        'request': {
                            'headers': '$3',
                            'body': '$4',
                        },
                    },
                },
            ],
        },
        {
            'name': 'runCode',
            'regex': [
                r'```(bash|python|py|javascript|js)(?!.*testIgnore).*?\r?\n'
                r'([\s\S]*?)\r?\n```',
            ],
            'actions': [
                {
                    'unsafe': True,
                    'runCode': {
                        'language': '$1',
                        'code': '$2',
                    },
                },
            ],
        },
    ],
}

FILE_TYPES = {
    'asciidoc_1_0': _ASCIIDOC,
    'html_1_0': _HTML,
    'markdown_1_0': _MARKDOWN,
}

#: Keywords pointing at the current version of each entry.
FILE_TYPES.update({
    'asciidoc': FILE_TYPES['asciidoc_1_0'],
    'html': FILE_TYPES['html_1_0'],
    'markdown': FILE_TYPES['markdown_1_0'],
})

DEFAULT_FILE_TYPES = ('markdown', 'asciidoc', 'html')
