class ParseError(ValueError):
    """Raised when a document cannot be turned into a feed at all."""


class MalformedDocument(ParseError):
    """The input is not well-formed XML."""


class MissingChannel(ParseError):
    """An RSS document without a <channel> element."""


class MissingFeedRoot(ParseError):
    """An Atom document whose root element is not <feed>."""


class UnrecognizedFormat(ParseError):
    """The root element is neither RSS 2.0 nor Atom 1.0."""
