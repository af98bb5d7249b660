"""Allow-list sanitization of the intermediate tree.

The default schema follows the one GitHub applies to rendered Markdown:
unknown elements are unwrapped, a handful of dangerous elements are dropped
together with their content, attributes are filtered per element, and URL
attributes must be relative or use a known protocol. ``class`` is permitted
on every element because code coloring and search highlighting both rely on
it.
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc

from mdpreview.syntax_tree import ElementNode, Node, Properties, TextNode

# ``None`` allows any value; a frozenset restricts the attribute to those values.
AttributeRules = dict[str, frozenset[str] | None]

GLOBAL_ATTRIBUTES = frozenset(
    {
        "abbr", "accept", "accept-charset", "accesskey", "action", "align",
        "alt", "aria-describedby", "aria-hidden", "aria-label",
        "aria-labelledby", "axis", "border", "cellpadding", "cellspacing",
        "char", "charoff", "charset", "checked", "class", "clear", "color",
        "cols", "colspan", "compact", "coords", "datetime", "dir", "disabled",
        "enctype", "for", "frame", "headers", "height", "hreflang", "hspace",
        "id", "ismap", "itemprop", "label", "lang", "maxlength", "media",
        "method", "multiple", "name", "nohref", "noshade", "nowrap", "open",
        "prompt", "readonly", "rev", "rows", "rowspan", "rules", "scope",
        "selected", "shape", "size", "span", "start", "summary", "tabindex",
        "title", "valign", "value", "width",
    }
)

TAG_NAMES = frozenset(
    {
        "a", "b", "blockquote", "br", "code", "dd", "del", "details", "div",
        "dl", "dt", "em", "h1", "h2", "h3", "h4", "h5", "h6", "hr", "i",
        "img", "input", "ins", "kbd", "li", "ol", "p", "picture", "pre", "q",
        "rp", "rt", "ruby", "s", "samp", "section", "source", "span",
        "strike", "strong", "sub", "summary", "sup", "table", "tbody", "td",
        "tfoot", "th", "thead", "tr", "tt", "ul", "var",
    }
)


def _rules(*names: str, **restricted: frozenset[str]) -> AttributeRules:
    rules: AttributeRules = dict.fromkeys(names)
    rules.update(restricted)
    return rules


@dc.dataclass(slots=True, frozen=True)
class SanitizeSchema:
    """Describe which elements, attributes, and URL protocols survive sanitizing.

    Attributes
    ----------
    tag_names : frozenset[str]
        Elements kept as-is; any other element is replaced by its children.
    strip : frozenset[str]
        Elements removed together with their content.
    global_attributes : frozenset[str]
        Attributes allowed on every kept element.
    attributes : dict[str, dict[str, frozenset[str] | None]]
        Extra per-element attributes, optionally restricted to fixed values.
    protocols : dict[str, frozenset[str]]
        Allowed URL schemes for URL-valued attributes.
    clobber : frozenset[str]
        Attributes whose values are prefixed with ``clobber_prefix`` so user
        content cannot shadow document-level ids.
    clobber_prefix : str
        Prefix applied to clobbered attribute values.
    """

    tag_names: frozenset[str] = TAG_NAMES
    strip: frozenset[str] = frozenset(
        {
            "embed", "iframe", "noscript", "object", "script", "style",
            "template", "textarea", "title",
        }
    )
    global_attributes: frozenset[str] = GLOBAL_ATTRIBUTES
    attributes: dict[str, AttributeRules] = dc.field(
        default_factory=lambda: {
            "a": _rules("href"),
            "blockquote": _rules("cite"),
            "del": _rules("cite"),
            "div": _rules("itemscope", "itemtype"),
            "img": _rules("src", "longdesc"),
            "input": _rules("disabled", "checked", type=frozenset({"checkbox"})),
            "ins": _rules("cite"),
            "q": _rules("cite"),
            "source": _rules("srcset"),
        }
    )
    protocols: dict[str, frozenset[str]] = dc.field(
        default_factory=lambda: {
            "href": frozenset({"http", "https", "irc", "ircs", "mailto", "xmpp"}),
            "cite": frozenset({"http", "https"}),
            "longdesc": frozenset({"http", "https"}),
            "src": frozenset({"http", "https"}),
        }
    )
    clobber: frozenset[str] = frozenset(
        {"aria-describedby", "aria-labelledby", "id", "name"}
    )
    clobber_prefix: str = "user-content-"

    def extend(self, extra: cabc.Mapping[str, cabc.Iterable[str]]) -> SanitizeSchema:
        """Return a copy allowing the additional attributes listed per element.

        The key ``"*"`` adds attributes to the global list.
        """
        attributes = {tag: dict(rules) for tag, rules in self.attributes.items()}
        global_attributes = set(self.global_attributes)
        for tag, names in extra.items():
            if tag == "*":
                global_attributes.update(names)
                continue
            attributes.setdefault(tag, {}).update(dict.fromkeys(names))
        return dc.replace(
            self,
            attributes=attributes,
            global_attributes=frozenset(global_attributes),
        )


DEFAULT_SCHEMA = SanitizeSchema()


def is_safe_url(value: str, allowed: cabc.Collection[str]) -> bool:
    """Return True when ``value`` is relative or uses one of ``allowed`` schemes."""
    colon = value.find(":")
    if colon == -1:
        return True
    for separator in ("/", "?", "#"):
        index = value.find(separator)
        if index != -1 and index < colon:
            return True
    return value[:colon].strip().lower() in allowed


def _sanitize_properties(
    tag_name: str, properties: Properties, schema: SanitizeSchema
) -> Properties:
    rules = schema.attributes.get(tag_name, {})
    cleaned: Properties = {}
    for name, value in properties.items():
        key = name.lower()
        if key == "class":
            names = value.split() if isinstance(value, str) else list(value)
            if names:
                cleaned["class"] = names
            continue
        if key in rules:
            allowed_values = rules[key]
        elif key in schema.global_attributes:
            allowed_values = None
        else:
            continue
        text = " ".join(value) if isinstance(value, list) else value
        if allowed_values is not None and text not in allowed_values:
            continue
        if key in schema.protocols and not is_safe_url(text, schema.protocols[key]):
            continue
        if key in schema.clobber and not text.startswith(schema.clobber_prefix):
            text = f"{schema.clobber_prefix}{text}"
        cleaned[key] = text
    return cleaned


def _sanitize_node(node: Node, schema: SanitizeSchema) -> list[Node]:
    match node:
        case TextNode(value=value, position=position):
            return [TextNode(value, position)]
        case ElementNode(tag_name=tag_name) if tag_name in schema.strip:
            return []
        case ElementNode(tag_name=tag_name) if tag_name not in schema.tag_names:
            return _sanitize_children(node.children, schema)
        case ElementNode(tag_name=tag_name, properties=properties, position=position):
            return [
                ElementNode(
                    tag_name,
                    _sanitize_properties(tag_name, properties, schema),
                    _sanitize_children(node.children, schema),
                    position,
                )
            ]
    msg = f"Unsupported node type: {type(node).__name__}"
    raise TypeError(msg)


def _sanitize_children(
    children: cabc.Iterable[Node], schema: SanitizeSchema
) -> list[Node]:
    cleaned: list[Node] = []
    for child in children:
        cleaned.extend(_sanitize_node(child, schema))
    return cleaned


def sanitize_tree(root: ElementNode, schema: SanitizeSchema = DEFAULT_SCHEMA) -> ElementNode:
    """Return a sanitized copy of the tree rooted at ``root``.

    The root element itself is kept regardless of its tag name; its
    descendants are filtered against ``schema``.
    """
    return ElementNode(
        root.tag_name, {}, _sanitize_children(root.children, schema), root.position
    )


__all__ = ["DEFAULT_SCHEMA", "SanitizeSchema", "is_safe_url", "sanitize_tree"]
