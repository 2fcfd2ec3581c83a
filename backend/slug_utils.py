"""URL slug工具，支持中文转拼音"""

from typing import Iterator

from slugify import slugify


def generate_slug(title: str, max_length: int = 80) -> str:
    """
    将标题转换为拼音slug

    示例：
        "深度学习入门指南" -> "shen-du-xue-xi-ru-men-zhi-nan"
        "Hello World 教程" -> "hello-world-jiao-cheng"

    Args:
        title: 文章标题
        max_length: 最大长度限制

    Returns:
        URL友好的slug字符串
    """
    if not title:
        return "untitled"

    # allow_unicode=False 确保中文转为拼音
    slug = slugify(title, allow_unicode=False)

    if not slug:
        return "untitled"

    # 限制长度，保留完整单词
    if len(slug) > max_length:
        parts = slug.split("-")
        result = []
        current_len = 0
        for part in parts:
            if current_len + len(part) + 1 <= max_length:
                result.append(part)
                current_len += len(part) + 1
            else:
                break
        slug = "-".join(result) if result else slug[:max_length]

    return slug


def slug_candidates(base_slug: str) -> Iterator[str]:
    """
    依次产出候选slug: base, base-2, base-3 ...

    示例：
        "hello" -> "hello", "hello-2", "hello-3", ...
    """
    yield base_slug
    suffix = 2
    while True:
        yield f"{base_slug}-{suffix}"
        suffix += 1
