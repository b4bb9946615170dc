"""Labelled transcripts for the evaluation harness.

Rule weights are tuned against this suite; every case must pass.
"""

from chatsplit.evaluation import EvaluationCase, LabeledTurn
from chatsplit.models import Role


GEMINI_JA_MARKED = EvaluationCase(
    id="gemini-ja-marked",
    name="Gemini (ja) with markers",
    description="Japanese Gemini paste with あなた / Gemini の回答 markers",
    raw_text="""あなた
Pythonでリストを逆順にする方法を教えて
Gemini の回答
Pythonでリストを逆順にする方法はいくつかあります。

## reverse() メソッド

元のリストをその場で逆順にします。

```python
items = [1, 2, 3]
items.reverse()
```

## スライス

`items[::-1]` は新しいリストを返します。元のリストを残したい場合に便利です。
""",
    expected_turns=[
        LabeledTurn(role=Role.USER, text="Pythonでリストを逆順にする方法を教えて"),
        LabeledTurn(role=Role.ASSISTANT, text="Pythonでリストを逆順にする方法はいくつかあります。"),
    ],
    expected_turn_count=2,
)

CHATGPT_MARKED = EvaluationCase(
    id="chatgpt-marked",
    name="ChatGPT with markers and UI noise",
    description="ChatGPT paste including Copy code / Thought for N seconds chrome",
    raw_text="""You said:
Write a Dockerfile for a small Flask app
ChatGPT said:
Thought for 4 seconds
Here is a minimal Dockerfile for a Flask application:

```dockerfile
FROM python:3.12-slim
WORKDIR /app
COPY requirements.txt .
RUN pip install -r requirements.txt
COPY . .
CMD ["flask", "run", "--host=0.0.0.0"]
```

Build it with `docker build -t flask-app .` and run it with `docker run -p 5000:5000 flask-app`.
""",
    expected_turns=[
        LabeledTurn(role=Role.USER, text="Write a Dockerfile for a small Flask app"),
        LabeledTurn(role=Role.ASSISTANT, text="Here is a minimal Dockerfile"),
    ],
    expected_turn_count=2,
)

# =============================================================================
# English conversations without markers
# =============================================================================

DECORATOR_QA = EvaluationCase(
    id="decorator-qa",
    name="Two Q/A pairs without markers",
    description="Short questions followed by prose and code answers",
    raw_text="""What is a Python decorator?

A decorator is a function that takes another function and returns a new function that usually extends its behaviour. This means you can add logging, caching or access checks without touching the original code. For example, @functools.lru_cache wraps a function so repeated calls with the same arguments return a stored result.

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
""",
    expected_turns=[
        LabeledTurn(role=Role.USER, text="What is a Python decorator?"),
        LabeledTurn(role=Role.ASSISTANT, text="A decorator is a function"),
        LabeledTurn(role=Role.USER, text="How do I write one that takes arguments?"),
        LabeledTurn(role=Role.ASSISTANT, text="To accept arguments, wrap the decorator"),
    ],
    expected_turn_count=4,
)

STACK_TRACE_DEBUG = EvaluationCase(
    id="stack-trace-debug",
    name="Pasted stack trace",
    description="Instruction line directly followed by a JS stack trace",
    raw_text="""npm start crashes with this
TypeError: Cannot read properties of undefined (reading 'map')
    at UserList (src/components/UserList.jsx:12:23)
    at renderWithHooks (node_modules/react-dom/cjs/react-dom.development.js:14985:18)

This error happens because `users` is undefined on the first render, so calling `.map` on it throws. The component renders before the fetch resolves, which means the state needs a safe initial value. Initialize the state with an empty array:

```jsx
const [users, setUsers] = useState([]);
```

With that default in place the first render maps over an empty list and the error goes away.
""",
    expected_turns=[
        LabeledTurn(role=Role.USER, text="npm start crashes with this"),
        LabeledTurn(role=Role.USER, text="TypeError: Cannot read properties"),
        LabeledTurn(role=Role.ASSISTANT, text="This error happens because"),
    ],
    expected_turn_count=3,
)

GRATITUDE_FOLLOW_UP = EvaluationCase(
    id="gratitude-follow-up",
    name="Thanks and acknowledgement",
    description="Question, answer, user thanks, assistant acknowledgement",
    raw_text="""How do I undo my last git commit but keep the changes?

Use a soft reset. This moves the branch pointer back one commit while leaving your changes staged, so nothing is lost:

```bash
git reset --soft HEAD~1
```

If you have already pushed the commit, prefer `git revert HEAD` instead, because rewriting shared history breaks everyone else who pulled the branch.

Thanks, that worked!

Glad it helped! Let me know if you run into anything else.
""",
    expected_turns=[
        LabeledTurn(role=Role.USER, text="How do I undo my last git commit"),
        LabeledTurn(role=Role.ASSISTANT, text="Use a soft reset."),
        LabeledTurn(role=Role.USER, text="Thanks, that worked!"),
        LabeledTurn(role=Role.ASSISTANT, text="Glad it helped!"),
    ],
    expected_turn_count=4,
)


# =============================================================================
# Japanese and English pastes, with and without markers
# =============================================================================

ENUM_UNION_MARKED = EvaluationCase(
    id="enum-union-marked",
    name="Simple Q&A (marked)",
    description="Gemini conversation with explicit markers",
    raw_text="""あなた

TypeScriptでenumとunion typeの違いを教えて

Gemini の回答

TypeScriptにおけるenumとunion typeの違いについて説明します。

## enum（列挙型）

enumは名前付き定数の集合を定義します。

```typescript
enum Direction {
  Up,
  Down,
  Left,
  Right
}
```

## union type（ユニオン型）

union typeは複数の型のいずれかを取る型を定義します。

```typescript
type Direction = 'Up' | 'Down' | 'Left' | 'Right';
```

### 主な違い

| 特徴 | enum | union type |
|------|------|-----------|
| ランタイムコスト | あり | なし |
| Tree-shaking | 不可 | 可能 |
| リバースマッピング | あり | なし |

一般的には、文字列リテラルのunion typeが推奨されます。""",
    expected_turns=[
        LabeledTurn(role=Role.USER, text="TypeScriptでenumとunion typeの違いを教えて"),
        LabeledTurn(role=Role.ASSISTANT, text="TypeScriptにおけるenumとunion typeの違いについて説明します。"),
    ],
    expected_turn_count=2,
)

REACT_STATE_RAW = EvaluationCase(
    id="react-state-raw",
    name="No markers (raw paste)",
    description="Conversation pasted without role markers; answers open with a one-line intro",
    raw_text="""Reactで状態管理どうするのがいい？

Reactでの状態管理にはいくつかのアプローチがあります。

### ローカルステート
コンポーネント内で完結する状態は `useState` で管理します。

### グローバルステート
アプリ全体で共有する状態には以下の選択肢があります：

1. **Context API** — 小〜中規模向け
2. **Zustand** — 軽量で使いやすい
3. **Redux Toolkit** — 大規模向け
4. **Jotai / Recoil** — アトミック設計

プロジェクトの規模に応じて選択することをお勧めします。

Zustandの例を見せて

以下はZustandの基本的な使い方です：

```typescript
import { create } from 'zustand';

interface CounterStore {
  count: number;
  increment: () => void;
  decrement: () => void;
}

const useCounter = create<CounterStore>((set) => ({
  count: 0,
  increment: () => set((state) => ({ count: state.count + 1 })),
  decrement: () => set((state) => ({ count: state.count - 1 })),
}));
```

非常にシンプルですね。Reduxと比べてボイラープレートが大幅に削減されます。""",
    expected_turns=[
        LabeledTurn(role=Role.USER, text="Reactで状態管理どうするのがいい？"),
        LabeledTurn(role=Role.ASSISTANT, text="Reactでの状態管理にはいくつかのアプローチがあります。"),
        LabeledTurn(role=Role.USER, text="Zustandの例を見せて"),
        LabeledTurn(role=Role.ASSISTANT, text="以下はZustandの基本的な使い方です："),
    ],
    expected_turn_count=4,
)

BUILD_ERROR_DEBUG = EvaluationCase(
    id="build-error-debug",
    name="Error debugging flow",
    description="User reports a compiler error, the assistant explains, the user confirms",
    raw_text="""npm run buildしたらエラーが出た

error TS2345: Argument of type 'string' is not assignable to parameter of type 'number'.
  src/utils.ts:42:15

このエラーは、関数に渡している引数の型が一致していないことを示しています。

`src/utils.ts` の42行目を確認してください。おそらく以下のようなコードがあると思います：

```typescript
// 問題のコード
someFunction("123");  // string を渡している

// 修正
someFunction(123);    // number を渡すべき
// または
someFunction(Number("123"));  // 変換する
```

直った！ありがとう

よかったです！TypeScriptの型エラーは慣れれば素早く対処できるようになります。他にも質問があればお気軽にどうぞ。""",
    expected_turns=[
        LabeledTurn(role=Role.USER, text="npm run buildしたらエラーが出た"),
        LabeledTurn(role=Role.USER, text="error TS2345:"),
        LabeledTurn(role=Role.ASSISTANT, text="このエラーは、関数に渡している引数の型が一致していないことを示しています。"),
        LabeledTurn(role=Role.USER, text="直った！ありがとう"),
        LabeledTurn(role=Role.ASSISTANT, text="よかったです！"),
    ],
    expected_turn_count=5,
)

GIT_BRANCH_MULTI_TURN = EvaluationCase(
    id="git-branch-multi-turn",
    name="Multi-turn technical",
    description="Short user questions with detailed, code-heavy answers",
    raw_text="""gitでブランチ消す方法

ローカルブランチを削除するには以下のコマンドを使用します：

```bash
# マージ済みブランチの削除
git branch -d feature/my-branch

# 強制削除（マージ未完了でも削除）
git branch -D feature/my-branch
```

リモートブランチも一緒に消せる？

はい、リモートブランチも削除できます：

```bash
git push origin --delete feature/my-branch
```

または短縮形：

```bash
git push origin :feature/my-branch
```

削除後は `git fetch --prune` でリモート追跡ブランチも整理することをお勧めします。

全部まとめてやるコマンドってない？

以下のワンライナーで処理できます：

```bash
git branch -d feature/my-branch && git push origin --delete feature/my-branch && git fetch --prune
```

エイリアスとして登録しておくと便利です：

```bash
git config --global alias.nuke '!f() { git branch -D $1 && git push origin --delete $1; }; f'
```

これで `git nuke feature/my-branch` だけで完了します。""",
    expected_turns=[
        LabeledTurn(role=Role.USER, text="gitでブランチ消す方法"),
        LabeledTurn(role=Role.ASSISTANT, text="ローカルブランチを削除するには以下のコマンドを使用します："),
        LabeledTurn(role=Role.USER, text="リモートブランチも一緒に消せる？"),
        LabeledTurn(role=Role.ASSISTANT, text="はい、リモートブランチも削除できます："),
        LabeledTurn(role=Role.USER, text="全部まとめてやるコマンドってない？"),
        LabeledTurn(role=Role.ASSISTANT, text="以下のワンライナーで処理できます："),
    ],
    expected_turn_count=6,
)

ASYNC_AWAIT_MARKED = EvaluationCase(
    id="async-await-marked",
    name="Claude markers",
    description="Two exchanges separated by You said: / Claude said:",
    raw_text="""You said:

Explain async/await in JavaScript

Claude said:

## Async/Await in JavaScript

`async/await` is syntactic sugar over Promises that makes asynchronous code easier to read and write.

### Basic Usage

```javascript
async function fetchUser(id) {
  const response = await fetch(`/api/users/${id}`);
  const user = await response.json();
  return user;
}
```

### Key Points

- `async` functions always return a Promise
- `await` pauses execution until the Promise resolves
- Error handling uses standard `try/catch`

You said:

What about error handling?

Claude said:

Error handling with async/await is straightforward using try/catch:

```javascript
async function fetchData() {
  try {
    const response = await fetch('/api/data');
    if (!response.ok) throw new Error('HTTP error');
    return await response.json();
  } catch (error) {
    console.error('Fetch failed:', error);
    throw error;
  }
}
```""",
    expected_turns=[
        LabeledTurn(role=Role.USER, text="Explain async/await in JavaScript"),
        LabeledTurn(role=Role.ASSISTANT, text="## Async/Await in JavaScript"),
        LabeledTurn(role=Role.USER, text="What about error handling?"),
        LabeledTurn(role=Role.ASSISTANT, text="Error handling with async/await is straightforward using try/catch:"),
    ],
    expected_turn_count=4,
)

DOCKERFILE_MARKED = EvaluationCase(
    id="dockerfile-marked",
    name="ChatGPT markers",
    description="Japanese ChatGPT conversation with explicit markers",
    raw_text="""You said:
Dockerfileのベストプラクティスを教えて

ChatGPT said:
Dockerfileを書く際のベストプラクティスをいくつか紹介します。

### 1. マルチステージビルド
```dockerfile
FROM node:20 AS builder
WORKDIR /app
COPY package*.json ./
RUN npm ci
COPY . .
RUN npm run build

FROM node:20-slim
WORKDIR /app
COPY --from=builder /app/dist ./dist
CMD ["node", "dist/index.js"]
```

### 2. .dockerignore を活用
不要なファイルをビルドコンテキストから除外します。

### 3. レイヤーキャッシュを意識
変更が少ない命令を上に配置してキャッシュを活用します。""",
    expected_turns=[
        LabeledTurn(role=Role.USER, text="Dockerfileのベストプラクティスを教えて"),
        LabeledTurn(role=Role.ASSISTANT, text="Dockerfileを書く際のベストプラクティスをいくつか紹介します。"),
    ],
    expected_turn_count=2,
)

SUPABASE_MIXED_LANGUAGE = EvaluationCase(
    id="supabase-mixed-language",
    name="Mixed language",
    description="English question, Japanese answers, short opener-led reply",
    raw_text="""How do I setup Supabase auth?

Supabase Authのセットアップ方法を説明します。

### 1. Supabaseプロジェクト作成
[Supabase Dashboard](https://app.supabase.com)にアクセスし、新しいプロジェクトを作成します。

### 2. クライアントライブラリのインストール

```bash
npm install @supabase/supabase-js
```

### 3. 初期化コード

```typescript
import { createClient } from '@supabase/supabase-js';

const supabase = createClient(
  process.env.SUPABASE_URL!,
  process.env.SUPABASE_ANON_KEY!
);
```

Google OAuthも使える？

はい、Supabase AuthはGoogle OAuthをサポートしています。

Settings > Authentication > Providers からGoogleを有効化し、Google Cloud ConsoleでOAuth 2.0クライアントIDを取得してください。""",
    expected_turns=[
        LabeledTurn(role=Role.USER, text="How do I setup Supabase auth?"),
        LabeledTurn(role=Role.ASSISTANT, text="Supabase Authのセットアップ方法を説明します。"),
        LabeledTurn(role=Role.USER, text="Google OAuthも使える？"),
        LabeledTurn(role=Role.ASSISTANT, text="はい、Supabase AuthはGoogle OAuthをサポートしています。"),
    ],
    expected_turn_count=4,
)

FLEXBOX_GRID_LONG = EvaluationCase(
    id="flexbox-grid-long",
    name="Single long response",
    description="One request followed by a long sectioned answer",
    raw_text="""CSSのflexboxとgridの使い分けを教えて

FlexboxとCSS Gridはどちらも強力なレイアウトシステムですが、それぞれ異なる用途に適しています。

## Flexbox

Flexboxは**一次元**のレイアウトに適しています。つまり、横方向または縦方向のどちらか一方にアイテムを配置する場合に最適です。

### 適用場面
- ナビゲーションバー
- ボタングループ
- メディアオブジェクト
- カードの中身の配置

```css
.nav {
  display: flex;
  justify-content: space-between;
  align-items: center;
}
```

## CSS Grid

CSS Gridは**二次元**のレイアウトに適しています。行と列の両方を同時に制御できます。

### 適用場面
- ページ全体のレイアウト
- カードグリッド
- ダッシュボード
- 複雑なフォームレイアウト

```css
.dashboard {
  display: grid;
  grid-template-columns: 250px 1fr 300px;
  grid-template-rows: auto 1fr auto;
  gap: 16px;
}
```

## まとめ

| 特徴 | Flexbox | Grid |
|------|---------|------|
| 次元 | 一次元 | 二次元 |
| 制御方向 | 行 or 列 | 行 + 列 |
| コンテンツ依存 | 高い | 低い |
| ブラウザサポート | 非常に良い | 良い |

実際のプロジェクトでは両方を組み合わせて使用するのが一般的です。""",
    expected_turns=[
        LabeledTurn(role=Role.USER, text="CSSのflexboxとgridの使い分けを教えて"),
        LabeledTurn(role=Role.ASSISTANT, text="FlexboxとCSS Gridはどちらも強力なレイアウトシステムですが、"),
    ],
    expected_turn_count=2,
)

ERROR_LOG_PASTE = EvaluationCase(
    id="error-log-paste",
    name="Error log paste",
    description="User pastes a multi-line stack trace, the assistant diagnoses in short paragraphs",
    raw_text="""これが出た

TypeError: Cannot read properties of undefined (reading 'map')
    at UserList (src/components/UserList.tsx:15:23)
    at renderWithHooks (node_modules/react-dom/cjs/react-dom.development.js:14985:18)
    at mountIndeterminateComponent (node_modules/react-dom/cjs/react-dom.development.js:17811:13)

このエラーは、`undefined` のプロパティ (`map`) を読み込もうとして発生しています。

`UserList.tsx` の15行目で、配列が `undefined` の状態で `.map()` を呼んでいるのが原因です。

### 修正方法

```typescript
// Before (エラーになる)
return users.map(u => <UserCard key={u.id} user={u} />);

// After (オプショナルチェーン)
return users?.map(u => <UserCard key={u.id} user={u} />) ?? <p>ユーザーがいません</p>;
```

または、初期値を設定する方法もあります：

```typescript
const [users, setUsers] = useState<User[]>([]);
```""",
    expected_turns=[
        LabeledTurn(role=Role.USER, text="これが出た"),
        LabeledTurn(role=Role.USER, text="TypeError: Cannot read properties"),
        LabeledTurn(role=Role.ASSISTANT, text="このエラーは"),
    ],
    expected_turn_count=3,
)

RAPID_FIRE_QA = EvaluationCase(
    id="rapid-fire-qa",
    name="Rapid-fire Q&A",
    description="Very short user questions with brief answers",
    raw_text="""npmとyarnどっちがいい？

どちらも優れたパッケージマネージャーですが、2024年以降は **npm** が推奨されています。npm 7以降でworkspacesもサポートされ、yarnとの機能差は縮小しています。

pnpmは？

pnpmは非常に優秀な選択肢です。ディスク容量を大幅に節約でき、インストール速度も最速クラスです。monorepoにも強いです。

Bunは？

Bunは新しいJavaScriptランタイム兼パッケージマネージャーです。非常に高速ですが、まだ本番環境での採用実績は少ないです。個人プロジェクトなら試す価値があります。

じゃあpnpmで行く

良い選択です！pnpmを使い始めるには：

```bash
npm install -g pnpm
pnpm init
pnpm add react react-dom
```""",
    expected_turns=[
        LabeledTurn(role=Role.USER, text="npmとyarnどっちがいい？"),
        LabeledTurn(role=Role.ASSISTANT, text="どちらも優れたパッケージマネージャーですが"),
        LabeledTurn(role=Role.USER, text="pnpmは？"),
        LabeledTurn(role=Role.ASSISTANT, text="pnpmは非常に優秀な選択肢です。"),
        LabeledTurn(role=Role.USER, text="Bunは？"),
        LabeledTurn(role=Role.ASSISTANT, text="Bunは新しいJavaScriptランタイム兼パッケージマネージャーです。"),
        LabeledTurn(role=Role.USER, text="じゃあpnpmで行く"),
        LabeledTurn(role=Role.ASSISTANT, text="良い選択です！pnpmを使い始めるには："),
    ],
    expected_turn_count=8,
)


BUILTIN_CASES: list[EvaluationCase] = [
    GEMINI_JA_MARKED,
    CHATGPT_MARKED,
    DECORATOR_QA,
    STACK_TRACE_DEBUG,
    GRATITUDE_FOLLOW_UP,
    ENUM_UNION_MARKED,
    REACT_STATE_RAW,
    BUILD_ERROR_DEBUG,
    GIT_BRANCH_MULTI_TURN,
    ASYNC_AWAIT_MARKED,
    DOCKERFILE_MARKED,
    SUPABASE_MIXED_LANGUAGE,
    FLEXBOX_GRID_LONG,
    ERROR_LOG_PASTE,
    RAPID_FIRE_QA,
]
