from acltree import Acl


class User:
    def __init__(self, name: str, role: str) -> None:
        self.name = name
        self.role = role

    def get_role_id(self) -> str:
        return self.role


class Post:
    def __init__(self, author: str) -> None:
        self.author = author

    def get_resource_id(self) -> str:
        return "post"


def is_author(acl, user, post, privilege) -> bool:
    return isinstance(user, User) and isinstance(post, Post) and post.author == user.name


def main() -> None:
    acl = Acl()
    acl.add_role("guest")
    acl.add_role("member", parents="guest")
    acl.add_role("moderator", parents="member")

    acl.add_resource("blog")
    acl.add_resource("post", parent="blog")

    acl.allow("guest", "blog", "view")
    acl.allow("member", "post", "comment")
    acl.allow("member", "post", "edit", assertion=is_author)
    acl.allow("moderator", "blog")
    acl.deny("moderator", "post", "delete")

    alice, bob = User("alice", "member"), User("bob", "member")
    post = Post(author="alice")

    print(acl.is_allowed(alice, post, "view"))  # True, guest rule on blog
    print(acl.is_allowed(alice, post, "edit"))  # True, alice wrote it
    print(acl.is_allowed(bob, post, "edit"))  # False
    print(acl.is_allowed("moderator", "post", "delete"))  # False
    print(acl.is_allowed("moderator", "post"))  # False, one privilege is denied
    print(acl.evaluate("moderator", "post", "view"))


if __name__ == "__main__":
    main()
