from dataclasses import dataclass, field
from typing import List


@dataclass
class CommentNode:
    """A top-level comment and its replies, both newest first."""
    comment: object
    replies: List[object] = field(default_factory=list)


@dataclass
class CommentThread:
    nodes: List[CommentNode] = field(default_factory=list)

    @property
    def total_comments(self) -> int:
        return len(self.nodes) + sum(len(node.replies) for node in self.nodes)

    def __iter__(self):
        return iter(self.nodes)

    def __len__(self):
        return len(self.nodes)


class CommentThreadAssembler:
    """
    Joins flat comment rows into a two-level tree.

    Top-level comments are loaded newest first, then every reply under them
    in one query, also newest first, and the replies are grouped under their
    top-level ancestor. A reply whose parent is itself a reply is attached to
    that reply's parent, so the tree never grows past depth one.
    """

    def __init__(self, comments):
        self.comments = comments

    def assemble(self, blog_id) -> CommentThread:
        return self.assemble_many([blog_id])[blog_id]

    def assemble_many(self, blog_ids) -> dict:
        """Build one thread per blog id with two queries for the whole batch."""
        blog_ids = list(blog_ids)
        threads = {blog_id: CommentThread() for blog_id in blog_ids}
        if not blog_ids:
            return threads

        top_level = self.comments.top_level(blog_ids)
        nodes = {}
        for comment in top_level:
            node = CommentNode(comment=comment)
            nodes[comment.pk] = node
            threads[comment.blog_id].nodes.append(node)

        if not nodes:
            return threads

        for reply in self.comments.replies(nodes.keys()):
            anchor = nodes.get(reply.parent_id)
            if anchor is None:
                anchor = nodes.get(reply.parent.parent_id)
            if anchor is not None:
                anchor.replies.append(reply)
        return threads
