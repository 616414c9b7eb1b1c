"""C expression tree — structurally preserved, literals canonicalized."""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field

from . import constants
from .ident import Identifier


class CUnaryOp(str, Enum):
    PLUS = "Plus"
    MINUS = "Minus"
    NOT = "Not"
    BIT_NOT = "BitNot"
    DEREF = "Deref"
    ADDR_OF = "AddrOf"
    SIZE_OF = "SizeOf"
    ALIGN_OF = "AlignOf"
    INC = "Inc"
    DEC = "Dec"


class CBinaryOp(str, Enum):
    MUL = "Mul"
    DIV = "Div"
    MOD = "Mod"
    ADD = "Add"
    SUB = "Sub"
    SHL = "Shl"
    SHR = "Shr"
    LESS = "Less"
    GREATER = "Greater"
    LESS_EQ = "LessEq"
    GREATER_EQ = "GreaterEq"
    EQ = "Eq"
    NOT_EQ = "NotEq"
    BIT_AND = "BitAnd"
    BIT_XOR = "BitXor"
    BIT_OR = "BitOr"
    AND = "And"
    OR = "Or"
    ASSIGN = "Assign"
    MUL_ASSIGN = "MulAssign"
    DIV_ASSIGN = "DivAssign"
    MOD_ASSIGN = "ModAssign"
    ADD_ASSIGN = "AddAssign"
    SUB_ASSIGN = "SubAssign"
    SHL_ASSIGN = "ShlAssign"
    SHR_ASSIGN = "ShrAssign"
    BIT_AND_ASSIGN = "BitAndAssign"
    BIT_XOR_ASSIGN = "BitXorAssign"
    BIT_OR_ASSIGN = "BitOrAssign"
    COMMA = "Comma"


UNARY_OPERATORS: dict[str, CUnaryOp] = {
    "+": CUnaryOp.PLUS,
    "-": CUnaryOp.MINUS,
    "!": CUnaryOp.NOT,
    "~": CUnaryOp.BIT_NOT,
    "*": CUnaryOp.DEREF,
    "&": CUnaryOp.ADDR_OF,
    "sizeof": CUnaryOp.SIZE_OF,
    "alignof": CUnaryOp.ALIGN_OF,
    "_Alignof": CUnaryOp.ALIGN_OF,
    "__alignof__": CUnaryOp.ALIGN_OF,
    "++": CUnaryOp.INC,
    "--": CUnaryOp.DEC,
}

BINARY_OPERATORS: dict[str, CBinaryOp] = {
    "*": CBinaryOp.MUL,
    "/": CBinaryOp.DIV,
    "%": CBinaryOp.MOD,
    "+": CBinaryOp.ADD,
    "-": CBinaryOp.SUB,
    "<<": CBinaryOp.SHL,
    ">>": CBinaryOp.SHR,
    "<": CBinaryOp.LESS,
    ">": CBinaryOp.GREATER,
    "<=": CBinaryOp.LESS_EQ,
    ">=": CBinaryOp.GREATER_EQ,
    "==": CBinaryOp.EQ,
    "!=": CBinaryOp.NOT_EQ,
    "&": CBinaryOp.BIT_AND,
    "^": CBinaryOp.BIT_XOR,
    "|": CBinaryOp.BIT_OR,
    "&&": CBinaryOp.AND,
    "||": CBinaryOp.OR,
    "=": CBinaryOp.ASSIGN,
    "*=": CBinaryOp.MUL_ASSIGN,
    "/=": CBinaryOp.DIV_ASSIGN,
    "%=": CBinaryOp.MOD_ASSIGN,
    "+=": CBinaryOp.ADD_ASSIGN,
    "-=": CBinaryOp.SUB_ASSIGN,
    "<<=": CBinaryOp.SHL_ASSIGN,
    ">>=": CBinaryOp.SHR_ASSIGN,
    "&=": CBinaryOp.BIT_AND_ASSIGN,
    "^=": CBinaryOp.BIT_XOR_ASSIGN,
    "|=": CBinaryOp.BIT_OR_ASSIGN,
    ",": CBinaryOp.COMMA,
}


class CIntLiteralExpr(BaseModel):
    kind: Literal["IntLiteral"] = "IntLiteral"
    value: str
    suffix: str = ""

    def __str__(self) -> str:
        return f"{self.value}{self.suffix}"


class CFloatLiteralExpr(BaseModel):
    kind: Literal["FloatLiteral"] = "FloatLiteral"
    value: str
    suffix: str = ""

    def __str__(self) -> str:
        return f"{self.value}{self.suffix}"


class CCharLiteralExpr(BaseModel):
    kind: Literal["CharLiteral"] = "CharLiteral"
    value: str

    def __str__(self) -> str:
        return self.value


class CStringLiteralExpr(BaseModel):
    kind: Literal["StringLiteral"] = "StringLiteral"
    value: str

    def __str__(self) -> str:
        return f'"{self.value}"'


class CIdentifierExpr(BaseModel):
    kind: Literal["Identifier"] = "Identifier"
    ident: Identifier

    def __str__(self) -> str:
        return str(self.ident)


class CIndexExpr(BaseModel):
    kind: Literal["Index"] = "Index"
    base: CExpr
    index: CExpr

    def __str__(self) -> str:
        return f"{self.base}[{self.index}]"


class CCallExpr(BaseModel):
    kind: Literal["Call"] = "Call"
    callee: CExpr
    args: list[CExpr] = []

    def __str__(self) -> str:
        return f"{self.callee}({', '.join(str(a) for a in self.args)})"


class CMemberExpr(BaseModel):
    kind: Literal["Member"] = "Member"
    obj: CExpr
    member: Identifier

    def __str__(self) -> str:
        return f"{self.obj}.{self.member}"


class CPtrMemberExpr(BaseModel):
    kind: Literal["PtrMember"] = "PtrMember"
    obj: CExpr
    member: Identifier

    def __str__(self) -> str:
        return f"{self.obj}->{self.member}"


class CPostfixIncDecExpr(BaseModel):
    kind: Literal["PostfixIncDec"] = "PostfixIncDec"
    expr: CExpr
    op: CUnaryOp

    def __str__(self) -> str:
        return f"{self.expr}{'++' if self.op == CUnaryOp.INC else '--'}"


class CUnaryExpr(BaseModel):
    kind: Literal["Unary"] = "Unary"
    expr: CExpr
    op: CUnaryOp

    def __str__(self) -> str:
        return f"{self.op.value}({self.expr})"


class CCastExpr(BaseModel):
    kind: Literal["Cast"] = "Cast"
    expr: CExpr
    ty: CExpr

    def __str__(self) -> str:
        return f"({self.ty}) {self.expr}"


class CBinaryExpr(BaseModel):
    kind: Literal["Binary"] = "Binary"
    op: CBinaryOp
    lhs: CExpr
    rhs: CExpr

    def __str__(self) -> str:
        return f"{self.lhs} {self.op.value} {self.rhs}"


class CConditionalExpr(BaseModel):
    kind: Literal["Conditional"] = "Conditional"
    cond: CExpr
    then: CExpr
    otherwise: CExpr

    def __str__(self) -> str:
        return f"{self.cond} ? {self.then} : {self.otherwise}"


class CParenExpr(BaseModel):
    kind: Literal["Paren"] = "Paren"
    expr: CExpr

    def __str__(self) -> str:
        return f"({self.expr})"


CExpr = Annotated[
    Union[
        CIntLiteralExpr,
        CFloatLiteralExpr,
        CCharLiteralExpr,
        CStringLiteralExpr,
        CIdentifierExpr,
        CIndexExpr,
        CCallExpr,
        CMemberExpr,
        CPtrMemberExpr,
        CPostfixIncDecExpr,
        CUnaryExpr,
        CCastExpr,
        CBinaryExpr,
        CConditionalExpr,
        CParenExpr,
    ],
    Field(discriminator="kind"),
]

for _model in (
    CIndexExpr,
    CCallExpr,
    CMemberExpr,
    CPtrMemberExpr,
    CPostfixIncDecExpr,
    CUnaryExpr,
    CCastExpr,
    CBinaryExpr,
    CConditionalExpr,
    CParenExpr,
):
    _model.model_rebuild()


def hex_text(value: int) -> str:
    """Canonical ``0x``-prefixed uppercase hex; negatives wrap to 64 bits."""
    return constants.HEX_LITERAL_TEMPLATE.format(value=value & constants.U64_MASK)


def int_literal(value: int, suffix: str = "") -> CIntLiteralExpr:
    return CIntLiteralExpr(value=hex_text(value), suffix=suffix)


def char_literal(code_point: int) -> CCharLiteralExpr:
    return CCharLiteralExpr(value=hex_text(code_point))
