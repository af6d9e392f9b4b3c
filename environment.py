"""
Environment and runtime value model for the Lox scripting language

Values map onto Python as: nil -> None, booleans -> bool, numbers -> float,
strings -> str. Everything callable derives from LoxCallable; instances are
LoxInstance. Closures keep their defining Environment alive by holding a
reference to it; reference cycles (an instance field holding a method whose
closure holds the instance) are left to Python's cycle collector.
"""

import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional
from errors import LoxRuntimeError, InternalError
from tokens import Token

class Environment:
    """One scope: name -> value bindings plus a link to the enclosing scope"""

    def __init__(self, enclosing: Optional['Environment'] = None):
        self.enclosing = enclosing
        self.values: Dict[str, Any] = {}

    def define(self, name: str, value: Any):
        """Bind a name in this scope. Redefinition is allowed (globals)."""
        self.values[name] = value

    def get(self, name: Token) -> Any:
        """Look a name up by walking outwards; used for globals"""
        environment = self
        while environment is not None:
            if name.lexeme in environment.values:
                return environment.values[name.lexeme]
            environment = environment.enclosing

        raise LoxRuntimeError.undefined_variable(name)

    def assign(self, name: Token, value: Any):
        """Assign to an existing binding; never declares"""
        environment = self
        while environment is not None:
            if name.lexeme in environment.values:
                environment.values[name.lexeme] = value
                return
            environment = environment.enclosing

        raise LoxRuntimeError.undefined_variable(name)

    def ancestor(self, distance: int) -> 'Environment':
        environment = self
        for _ in range(distance):
            if environment.enclosing is None:
                raise InternalError(f"No environment {distance} scope(s) out")
            environment = environment.enclosing
        return environment

    def get_at(self, distance: int, name: str) -> Any:
        """Fetch a resolved local. The resolver guarantees the binding exists,
        so a miss is an interpreter bug."""
        values = self.ancestor(distance).values
        if name not in values:
            raise InternalError(f"Resolved variable '{name}' missing at distance {distance}")
        return values[name]

    def assign_at(self, distance: int, name: Token, value: Any):
        values = self.ancestor(distance).values
        if name.lexeme not in values:
            raise InternalError(f"Resolved variable '{name.lexeme}' missing at distance {distance}")
        values[name.lexeme] = value

class LoxCallable(ABC):
    """Anything that can appear before '(' in a call"""

    @abstractmethod
    def arity(self) -> int:
        raise NotImplementedError

    @abstractmethod
    def call(self, interpreter, arguments: List[Any]) -> Any:
        raise NotImplementedError

class NativeFunction(LoxCallable):
    """Host-provided function"""

    def __init__(self, name: str, arity: int, function: Callable[..., Any]):
        self.name = name
        self._arity = arity
        self.function = function

    def arity(self) -> int:
        return self._arity

    def call(self, interpreter, arguments: List[Any]) -> Any:
        return self.function(*arguments)

    def __str__(self):
        return "<native fn>"

def clock() -> float:
    return time.time()

NATIVES = [
    NativeFunction("clock", 0, clock),
]

class LoxFunction(LoxCallable):
    """User-defined function, method, or function literal"""

    def __init__(self, name: Optional[str], params: List[Token], body: list,
                 closure: Environment, is_initializer: bool = False):
        self.name = name
        self.params = params
        self.body = body
        self.closure = closure
        self.is_initializer = is_initializer

    @classmethod
    def from_declaration(cls, declaration, closure: Environment, is_initializer: bool = False):
        return cls(declaration.name.lexeme, declaration.params, declaration.body,
                   closure, is_initializer)

    def arity(self) -> int:
        return len(self.params)

    def bind(self, instance: 'LoxInstance') -> 'LoxFunction':
        """Method bound to an instance: a new scope holding 'this'"""
        environment = Environment(self.closure)
        environment.define("this", instance)
        return LoxFunction(self.name, self.params, self.body, environment, self.is_initializer)

    def call(self, interpreter, arguments: List[Any]) -> Any:
        environment = Environment(self.closure)
        for param, argument in zip(self.params, arguments):
            environment.define(param.lexeme, argument)

        signal = interpreter.execute_block(self.body, environment)

        # init always hands back the instance, even after a bare 'return;'
        if self.is_initializer:
            return self.closure.get_at(0, "this")
        if signal is not None:
            return signal.value
        return None

    def __str__(self):
        if self.name is None:
            return "<fn>"
        return f"<fn {self.name}>"

class LoxClass(LoxCallable):
    """User-defined class; calling it constructs an instance"""

    def __init__(self, name: str, superclass: Optional['LoxClass'],
                 methods: Dict[str, LoxFunction]):
        self.name = name
        self.superclass = superclass
        self.methods = methods

    def find_method(self, name: str) -> Optional[LoxFunction]:
        """Search this class, then each superclass in turn"""
        klass = self
        while klass is not None:
            if name in klass.methods:
                return klass.methods[name]
            klass = klass.superclass
        return None

    def arity(self) -> int:
        initializer = self.find_method("init")
        if initializer is None:
            return 0
        return initializer.arity()

    def call(self, interpreter, arguments: List[Any]) -> 'LoxInstance':
        instance = LoxInstance(self)
        initializer = self.find_method("init")
        if initializer is not None:
            initializer.bind(instance).call(interpreter, arguments)
        return instance

    def __str__(self):
        return self.name

class LoxInstance:
    """Instance of a Lox class"""

    def __init__(self, klass: LoxClass):
        self.klass = klass
        self.fields: Dict[str, Any] = {}

    def get(self, name: Token) -> Any:
        """Fields shadow methods; methods come back bound to this instance"""
        if name.lexeme in self.fields:
            return self.fields[name.lexeme]

        method = self.klass.find_method(name.lexeme)
        if method is not None:
            return method.bind(self)

        raise LoxRuntimeError.undefined_property(name)

    def set(self, name: Token, value: Any):
        self.fields[name.lexeme] = value

    def __str__(self):
        return f"{self.klass.name} instance"
