"""Shared fixtures for core unit tests"""

import pytest

from mdsite.core.render.pipeline import MarkdownRenderer, RenderOptions


SAMPLE_MD = """\
# Heading 1

A paragraph with **bold** text.

## Heading 2

- item one
- item two

```python
print("hello")
```

---

Footer paragraph.
"""


def write_post(directory, name, title, date="", body="Body text.", **extra):
    """Write a content file with simple frontmatter and return its path."""
    lines = ["---", f"title: {title}"]
    if date:
        lines.append(f"date: {date}")
    lines.extend(f"{k}: {v}" for k, v in extra.items())
    lines.extend(["---", "", body, ""])
    path = directory / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("\n".join(lines))
    return path


@pytest.fixture(name="sample_md")
def sample_md_fixture():
    return SAMPLE_MD


@pytest.fixture(name="renderer")
def renderer_fixture():
    return MarkdownRenderer(RenderOptions())


@pytest.fixture(name="content_root")
def content_root_fixture(tmp_path):
    """routes/ with a home page, an about page and a blog directory of three dated posts."""
    root = tmp_path / "routes"
    root.mkdir()
    (root / "index.md").write_text("---\ntitle: Home\n---\n\n# Welcome\n")
    (root / "about.md").write_text("---\ntitle: About\n---\n\nAbout us.\n")
    blog = root / "blog"
    write_post(blog, "first.md", "T1", "2024-01-15", author="Ann", tags="[x, y]")
    write_post(blog, "second.md", "T2", "2024-01-20")
    write_post(blog, "third.md", "T3", "2024-01-25")
    (blog / "index.md").write_text("---\ntitle: Blog\n---\n\n{{routes:toc}}\n")
    return root
