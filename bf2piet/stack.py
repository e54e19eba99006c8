"""Stack protocol built from primitive Piet instructions.

Brainfuck's tape lives on the Piet stack:

    (top) value, index + 3, last index + 3, other cells left to right (bottom)

e.g. tape A B C D E F with the pointer on D:

    (top) D 6 8 A B C E F (bottom)

Three helpers move cells in and out of that layout:

    pick(n)   copy the n-th value (0 = top) onto the top
    deposit   bury the top value at the depth named by the second value
              D 6 8 A B C E F  ->  6 8 A B C D E F
    withdraw  pull the value at the depth named by the top back up
              5 8 A B C D E F  ->  C 5 8 A B D E F

`session` is anything with an `emit(op, count=1)` method.
"""


def push(session, n: int) -> None:
    # a block can only hold a positive count of codels
    if n > 0:
        session.emit("push", n)
    elif n == 0:
        session.emit("push", 1)
        session.emit("push", 1)
        session.emit("sub")
    else:
        session.emit("push", 1)
        session.emit("push", 1 - n)
        session.emit("sub")


def pick(session, n: int) -> None:
    if n == 0:
        session.emit("dup")
        return
    push(session, n + 1)
    push(session, -1)
    session.emit("roll")
    session.emit("dup")
    push(session, n + 2)
    push(session, 1)
    session.emit("roll")


def deposit(session) -> None:
    pick(session, 1)
    push(session, 1)
    session.emit("roll")


def withdraw(session) -> None:
    session.emit("dup")
    push(session, -1)
    session.emit("roll")
