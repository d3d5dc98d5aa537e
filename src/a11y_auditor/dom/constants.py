# src/a11y_auditor/dom/constants.py
"""
Lookup tables shared by the matcher, the text extractor, the context analyzer
and the rule validators.
"""
import re

HTML_TAGS = frozenset([
    # Document metadata
    "html", "head", "title", "base", "link", "meta", "style",
    # Content sectioning
    "address", "article", "aside", "footer", "header",
    "h1", "h2", "h3", "h4", "h5", "h6", "main", "nav", "section",
    # Text content
    "blockquote", "dd", "div", "dl", "dt", "figcaption", "figure", "hr",
    "li", "ol", "p", "pre", "ul",
    # Inline text semantics
    "a", "abbr", "b", "bdi", "bdo", "br", "cite", "code", "data", "dfn", "em",
    "i", "kbd", "mark", "q", "rp", "rt", "ruby", "s", "samp", "small", "span",
    "strong", "sub", "sup", "time", "u", "var", "wbr",
    # Image, multimedia and embedded content
    "area", "audio", "img", "map", "track", "video",
    "embed", "iframe", "object", "picture", "portal", "source", "svg", "math",
    # Scripting and edits
    "canvas", "noscript", "script", "del", "ins",
    # Tables
    "caption", "col", "colgroup", "table", "tbody", "td", "tfoot", "th", "thead", "tr",
    # Forms
    "button", "datalist", "fieldset", "form", "input", "label", "legend", "meter",
    "optgroup", "option", "output", "progress", "select", "textarea",
    # Interactive elements and web components
    "details", "dialog", "summary", "slot", "template",
])

HEADING_TAGS = ("h1", "h2", "h3", "h4", "h5", "h6")

# Alt text that says nothing about the image
MEANINGLESS_ALT_TERMS = frozenset([
    "image", "img", "picture", "pic", "photo", "photograph", "graphic",
    "illustration", "figure", "diagram", "chart", "graph",
    "icon", "logo", "button", "link", "banner", "header", "footer",
    "jpeg", "jpg", "png", "gif", "svg", "webp", "bitmap", "file",
    "placeholder", "dummy", "sample", "example", "test",
    "visual", "element", "content", "item", "object", "thing",
    "untitled", "unnamed", "default", "blank", "empty",
    "decoration", "decorative", "ornament", "border", "spacer", "separator",
])

FILE_EXTENSION_PATTERN = re.compile(r"\.(jpg|jpeg|png|gif|svg|webp|bmp)$", re.IGNORECASE)

NON_DESCRIPTIVE_LINK_PATTERNS = [
    re.compile(
        r"^(click here|click|here|this|that|more|read more|learn more|see more|view more|show more|"
        r"continue|continue reading|keep reading|next|previous|prev|back|forward|go|download|open|"
        r"view|see|watch|listen)$",
        re.IGNORECASE,
    ),
    re.compile(
        r"^(link|url|website|page|site|document|file|article|post|item|content|details|info|information)$",
        re.IGNORECASE,
    ),
    re.compile(r"^[><»«x+\-123]$"),
    re.compile(r"^lorem ipsum", re.IGNORECASE),
    re.compile(r"^(placeholder|example|sample|test)$", re.IGNORECASE),
]

# ARIA 1.2 roles, abstract roles included. Order is used for messages only.
VALID_ARIA_ROLES_ORDERED = (
    "application", "article", "banner", "complementary", "contentinfo", "definition",
    "directory", "document", "feed", "figure", "group", "heading", "img", "list",
    "listitem", "main", "math", "navigation", "none", "note", "presentation", "region",
    "search", "separator", "toolbar", "form",
    "alert", "log", "marquee", "status", "timer",
    "alertdialog", "dialog",
    "button", "checkbox", "gridcell", "link", "menuitem", "menuitemcheckbox",
    "menuitemradio", "option", "progressbar", "radio", "scrollbar", "searchbox",
    "slider", "spinbutton", "switch", "tab", "tabpanel", "textbox", "tooltip", "treeitem",
    "combobox", "grid", "listbox", "menu", "menubar", "radiogroup", "tablist", "tree", "treegrid",
    "command", "composite", "input", "landmark", "range", "roletype", "section",
    "sectionhead", "select", "structure", "widget",
    "cell", "columnheader", "row", "rowgroup", "rowheader", "table",
    "term", "generic",
)
VALID_ARIA_ROLES = frozenset(VALID_ARIA_ROLES_ORDERED)

INTERACTIVE_ARIA_ROLES = frozenset([
    "button", "link", "checkbox", "radio", "switch", "textbox", "searchbox",
    "menuitem", "menuitemcheckbox", "menuitemradio", "option", "tab", "treeitem",
    "slider", "spinbutton", "scrollbar",
    "combobox", "listbox", "menu", "menubar", "radiogroup", "tablist", "tree", "treegrid",
    "grid", "gridcell",
])

INTERACTIVE_HTML_ELEMENTS = frozenset(["a", "button", "input", "select", "textarea", "details", "summary"])

INTERACTIVE_EVENT_HANDLERS = (
    "onClick", "onPress", "onTap", "onKeyDown", "onKeyPress", "onKeyUp",
    "onMouseDown", "onMouseUp", "onTouchStart", "onTouchEnd",
)
CLICK_HANDLERS = ("onClick", "onPress", "onTap", "onKeyDown", "onKeyPress", "onKeyUp")
KEYBOARD_HANDLERS = ("onKeyDown", "onKeyPress", "onKeyUp")

INPUT_TYPES_WITHOUT_LABELS = frozenset(["hidden", "submit", "button", "reset", "image"])

ARIA_LABELING_ATTRIBUTES = ("aria-label", "aria-labelledby", "aria-describedby", "aria-description", "title")
EXPLICIT_LABELING_ATTRIBUTES = ("aria-label", "aria-labelledby", "title")

ARIA_ATTRIBUTE_VALUES = {
    "aria-hidden": ("true", "false"),
    "aria-expanded": ("true", "false", "undefined"),
    "aria-pressed": ("true", "false", "mixed", "undefined"),
    "aria-checked": ("true", "false", "mixed", "undefined"),
    "aria-selected": ("true", "false", "undefined"),
    "aria-current": ("page", "step", "location", "date", "time", "true", "false"),
    "aria-disabled": ("true", "false"),
    "aria-invalid": ("true", "false", "grammar", "spelling"),
    "aria-haspopup": ("true", "false", "menu", "listbox", "tree", "grid", "dialog"),
    "aria-live": ("off", "polite", "assertive"),
    "aria-orientation": ("horizontal", "vertical", "undefined"),
    "aria-sort": ("ascending", "descending", "none", "other"),
    "aria-autocomplete": ("inline", "list", "both", "none"),
}

# Any token a valid ARIA value could start with; literals outside this set are obviously wrong.
KNOWN_ARIA_TOKENS = frozenset(
    token for values in ARIA_ATTRIBUTE_VALUES.values() for token in values
) | {"yes", "no"}

SCREEN_READER_ONLY_PATTERNS = [
    re.compile(r"\bsr-only\b"),
    re.compile(r"\bscreen-reader-only\b"),
    re.compile(r"\bvisually-hidden\b"),
    re.compile(r"\ba11y-hidden\b"),
    re.compile(r"\baccessibility-hidden\b"),
    re.compile(r"\boffscreen\b"),
]

# Whole class tokens only: `visually-hidden` is screen-reader-only, not hidden
HIDDEN_CLASS_PATTERNS = [
    re.compile(r"(?<![\w-])hidden(?![\w-])"),
    re.compile(r"(?<![\w-])invisible(?![\w-])"),
    re.compile(r"\bopacity-0\b"),
    re.compile(r"\bdisplay-none\b"),
    re.compile(r"\bd-none\b"),
]

HIDDEN_STYLE_PATTERNS = [
    re.compile(r"display:\s*['\"]?none"),
    re.compile(r"visibility:\s*['\"]?hidden"),
    re.compile(r"opacity:\s*['\"]?0(?![.\d])"),
    re.compile(r"clip:\s*rect\(0,\s*0,\s*0,\s*0\)"),
]

ICON_COMPONENT_PATTERNS = [
    re.compile(r"Icon$"),
    re.compile(r"^Icon"),
    re.compile(r"^Fa[A-Z]"),  # FontAwesome
    re.compile(r"^Md[A-Z]"),  # Material Design
    re.compile(r"^Fi[A-Z]"),  # Feather
    re.compile(r"^Hi[A-Z]"),  # Heroicons
    re.compile(r"^Lu[A-Z]"),  # Lucide
    re.compile(r"^Bs[A-Z]"),  # Bootstrap Icons
    re.compile(r"^Ai[A-Z]"),  # Ant Design Icons
    re.compile(r"^Tb[A-Z]"),  # Tabler Icons
]

ICON_CLASS_PATTERNS = [
    re.compile(r"\bicon\b"),
    re.compile(r"\bfa-"),
    re.compile(r"\bmaterial-icons\b"),
    re.compile(r"\blucide\b"),
    re.compile(r"\bfeather\b"),
    re.compile(r"\bheroicons\b"),
    re.compile(r"\btabler-icon\b"),
    re.compile(r"\bbootstrap-icon\b"),
    re.compile(r"\banticon\b"),
]

# Tags never contributing text. An <img> only qualifies with alt="".
DECORATIVE_TAGS = frozenset(["svg", "icon", "loader", "spinner"])

# Tag fragments of icon/loader components commonly found inside buttons
DECORATIVE_COMPONENT_FRAGMENTS = (
    "loader", "spinner", "loading", "icon", "svg", "chevron", "caret", "arrow",
)

DECORATIVE_CLASS_PATTERNS = [
    re.compile(r"\bicon\b", re.IGNORECASE),
    re.compile(r"\bspinner\b", re.IGNORECASE),
    re.compile(r"\bloader\b", re.IGNORECASE),
    re.compile(r"\banimate-spin\b", re.IGNORECASE),
]

PRESENTATION_ROLES = frozenset(["presentation", "none"])

TEXT_BEARING_PROPS = ("children", "label", "text", "value", "content")

LABELING_PROP_NAMES = frozenset([
    "label", "labelText", "inputLabel", "fieldLabel", "aria", "ariaLabel",
    "accessibilityLabel", "description", "hint", "helperText",
])

SPREAD_PROP_NAMES = frozenset([
    "props", "rest", "otherProps", "additionalProps", "a11yProps",
    "accessibility", "attributes", "attrs",
])

SEVERITY_WEIGHTS = {"error": 10, "warning": 5, "info": 1}
