"""Pytest configuration and fixtures."""

import pytest

from chatsplit.config.settings import Settings, get_settings


@pytest.fixture(autouse=True)
def strict_settings(monkeypatch):
    """Run every test with coverage violations raised, on fresh settings."""
    monkeypatch.setenv("STRICT_INVARIANTS", "true")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings() -> Settings:
    return get_settings()


@pytest.fixture
def gemini_ja_text() -> str:
    """Japanese Gemini paste with both role markers."""
    return """あなた
Pythonでリストを逆順にする方法を教えて
Gemini の回答
Pythonでリストを逆順にする方法はいくつかあります。

## reverse() メソッド

```python
items = [1, 2, 3]
items.reverse()
```
"""


@pytest.fixture
def chatgpt_text() -> str:
    """ChatGPT paste with markers and a thinking banner."""
    return """You said:
How do I list hidden files?
ChatGPT said:
Thought for 3 seconds
Use the -a flag:

```bash
ls -a
```
"""


@pytest.fixture
def qa_pairs_text() -> str:
    """Two question/answer pairs without any markers."""
    return """What is a Python decorator?

A decorator is a function that takes another function and returns a new function that usually extends its behaviour. This means you can add logging, caching or access checks without touching the original code.

How do I write one that takes arguments?

To accept arguments, wrap the decorator in one more function:

```python
def repeat(times):
    def decorator(func):
        def wrapper(*args, **kwargs):
            for _ in range(times):
                result = func(*args, **kwargs)
            return result
        return wrapper
    return decorator
```

The outer function receives the arguments and returns the actual decorator.
"""


@pytest.fixture
def stack_trace_text() -> str:
    """Instruction line directly followed by a stack trace, then an answer."""
    return """npm start crashes with this
TypeError: Cannot read properties of undefined (reading 'map')
    at UserList (src/components/UserList.jsx:12:23)
    at renderWithHooks (node_modules/react-dom/cjs/react-dom.development.js:14985:18)

This error happens because `users` is undefined on the first render, so calling `.map` on it throws. The component renders before the fetch resolves, which means the state needs a safe initial value. Initialize the state with an empty array:

```jsx
const [users, setUsers] = useState([]);
```

With that default in place the first render maps over an empty list and the error goes away.
"""


@pytest.fixture
def unterminated_fence_text() -> str:
    """Question followed by a fence that is never closed."""
    return "Can you fix this function?\n\n```python\ndef f(x):\n    return x +"
