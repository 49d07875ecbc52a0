"""Error types shared across the motion control stack."""


class DomainError(ValueError):
    """A function was evaluated outside the domain it was built for.

    Raised by piecewise functions outside their bounds, by numeric inverses
    whose target is not bracketed, and by inverse trig functions outside
    [-1, 1]. Near the end of a path this is an expected signal, not a bug;
    callers that can tolerate it catch this type specifically.
    """
