import random

import pytest

from iowatcher.rbtree import Color, RBNode, RBTree


def _root(tree):
    node = tree.first()
    if node is None:
        return None
    while node.parent is not None:
        node = node.parent
    return node


def _black_height(node):
    if node is None:
        return 1
    if node.left is not None:
        assert node.left.parent is node
        assert node.left.key < node.key
    if node.right is not None:
        assert node.right.parent is node
        assert node.right.key > node.key
    if node.color is Color.RED:
        for child in (node.left, node.right):
            assert child is None or child.color is Color.BLACK
    left = _black_height(node.left)
    right = _black_height(node.right)
    assert left == right
    return left + (1 if node.color is Color.BLACK else 0)


def _check(tree):
    root = _root(tree)
    if root is not None:
        assert root.color is Color.BLACK
    _black_height(root)
    keys = [n.key for n in tree]
    assert keys == sorted(keys)
    assert len(keys) == len(tree)


def test_empty_tree():
    tree = RBTree()
    assert len(tree) == 0
    assert tree.first() is None
    assert tree.last() is None
    assert tree.find(1) is None
    assert list(tree) == []


@pytest.mark.parametrize("seed", [0, 1, 2, 3])
def test_random_inserts_keep_invariants(seed):
    rng = random.Random(seed)
    keys = rng.sample(range(10000), 500)
    tree = RBTree()
    for k in keys:
        tree.insert(k, str(k))
    _check(tree)
    assert [n.key for n in tree] == sorted(keys)
    assert tree.first().key == min(keys)
    assert tree.last().key == max(keys)


def test_ascending_inserts_stay_balanced():
    tree = RBTree()
    for k in range(1024):
        tree.insert(k)
    _check(tree)

    def depth(node):
        return 0 if node is None else 1 + max(depth(node.left), depth(node.right))

    assert depth(_root(tree)) <= 2 * 11


def test_find_returns_value():
    tree = RBTree()
    for k in (5, 3, 8, 1):
        tree.insert(k, k * 10)
    assert tree.find(8).value == 80
    assert tree.find(4) is None


def test_duplicate_insert_returns_existing():
    tree = RBTree()
    first = tree.insert(7, "a")
    again = tree.insert(7, "b")
    assert again is first
    assert again.value == "a"
    assert len(tree) == 1


def test_next_and_prev_walk():
    tree = RBTree()
    for k in (10, 4, 15, 2, 6, 12, 20):
        tree.insert(k)
    forward = []
    node = tree.first()
    while node is not None:
        forward.append(node.key)
        node = node.next()
    backward = []
    node = tree.last()
    while node is not None:
        backward.append(node.key)
        node = node.prev()
    assert forward == sorted(forward)
    assert backward == list(reversed(forward))


@pytest.mark.parametrize("seed", [5, 6, 7])
def test_random_erase_keeps_invariants(seed):
    rng = random.Random(seed)
    keys = rng.sample(range(5000), 300)
    tree = RBTree()
    for k in keys:
        tree.insert(k)
    removed = rng.sample(keys, 200)
    for k in removed:
        node = tree.find(k)
        tree.erase(node)
        _check(tree)
        assert tree.find(k) is None
    assert sorted(n.key for n in tree) == sorted(set(keys) - set(removed))


def test_erase_all_empties_tree():
    tree = RBTree()
    for k in range(50):
        tree.insert(k)
    for node in list(tree):
        tree.erase(node)
    assert len(tree) == 0
    assert tree.first() is None


def test_iteration_survives_erasing_current():
    tree = RBTree()
    for k in range(20):
        tree.insert(k)
    seen = []
    for node in tree:
        seen.append(node.key)
        if node.key % 2:
            tree.erase(node)
    assert seen == list(range(20))
    assert [n.key for n in tree] == list(range(0, 20, 2))
    _check(tree)


def test_replace_node():
    tree = RBTree()
    for k in (1, 2, 3, 4, 5):
        tree.insert(k, "old")
    victim = tree.find(3)
    new = RBNode(3, "new")
    tree.replace_node(victim, new)
    assert tree.find(3) is new
    assert tree.find(3).value == "new"
    assert victim.parent is None and victim.left is None and victim.right is None
    _check(tree)
    assert len(tree) == 5