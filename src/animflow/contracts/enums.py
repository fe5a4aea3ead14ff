"""All node types, port kinds, track types and operators used across module boundaries.

Every enum here is closed: dispatch over them ends in assert_never, so adding
a member without handling it is a type error rather than a silent default.
"""

from enum import StrEnum


class NodeType(StrEnum):
    """Type tag of a flow node.

    Values match the type strings written by the flow editor.
    """

    CIRCLE = "circle"
    RECTANGLE = "rectangle"
    TRIANGLE = "triangle"
    INSERT = "insert"
    ANIMATION = "animation"
    MERGE = "merge"
    DUPLICATE = "duplicate"
    FILTER = "filter"
    BATCH = "batch"
    CONSTANTS = "constants"
    RESULT = "result"
    COMPARE = "compare"
    IF_ELSE = "if_else"
    BOOLEAN_OP = "boolean_op"
    MATH_OP = "math_op"
    SCENE = "scene"


class PortKind(StrEnum):
    """Payload category published on a port.

    OBJECT_STREAM carries a list of scene objects plus per-object metadata.
    DATA carries a single logic value (number, string, boolean, color, anything).
    """

    OBJECT_STREAM = "object_stream"
    DATA = "data"


class TrackType(StrEnum):
    """Kind of authored animation track."""

    MOVE = "move"
    ROTATE = "rotate"
    SCALE = "scale"
    FADE = "fade"
    COLOR = "color"


class Easing(StrEnum):
    """Easing curve applied across a track's duration."""

    LINEAR = "linear"
    EASE_IN = "easeIn"
    EASE_OUT = "easeOut"
    EASE_IN_OUT = "easeInOut"


class LogicDataType(StrEnum):
    """Declared primitive type of a value flowing between logic nodes.

    ANY is accepted by untyped ports (if/else data, result input).
    """

    NUMBER = "number"
    STRING = "string"
    BOOLEAN = "boolean"
    COLOR = "color"
    ANY = "any"


class ConstantValueType(StrEnum):
    """Value type a constants node emits."""

    NUMBER = "number"
    STRING = "string"
    BOOLEAN = "boolean"
    COLOR = "color"


class CompareOperator(StrEnum):
    """Numeric comparison performed by a compare node."""

    GT = "gt"
    LT = "lt"
    EQ = "eq"
    NEQ = "neq"
    GTE = "gte"
    LTE = "lte"


class BooleanOperator(StrEnum):
    """Boolean operation performed by a boolean_op node.

    NOT is unary and reads only input1.
    """

    AND = "and"
    OR = "or"
    XOR = "xor"
    NOT = "not"


class MathOperator(StrEnum):
    """Arithmetic operation performed by a math_op node.

    SQRT and ABS are unary and read only input_a.
    """

    ADD = "add"
    SUBTRACT = "subtract"
    MULTIPLY = "multiply"
    DIVIDE = "divide"
    MODULO = "modulo"
    POWER = "power"
    SQRT = "sqrt"
    ABS = "abs"
    MIN = "min"
    MAX = "max"


UNARY_MATH_OPERATORS: frozenset[MathOperator] = frozenset({MathOperator.SQRT, MathOperator.ABS})
