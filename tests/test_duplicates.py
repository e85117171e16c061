from duplicates import find_duplicates, is_duplicate


def test_names_compare_case_and_whitespace_insensitively(store):
    a = store.create("task", "Alpha")
    b = store.create("task", "alpha ")
    c = store.create("task", "Beta")

    dups = find_duplicates(store.tasks)

    assert dups.names == {"alpha"}
    assert is_duplicate(a, dups)
    assert is_duplicate(b, dups)
    assert not is_duplicate(c, dups)


def test_references_are_counted_separately(store):
    store.create("project", "One", reference="PRJ-1")
    store.create("project", "Two", reference=" prj-1")
    store.create("project", "Three", reference="PRJ-2")

    dups = find_duplicates(store.tasks)

    assert dups.references == {"prj-1"}
    assert dups.names == frozenset()


def test_archived_tasks_count(store):
    kept = store.create("task", "Report")
    old = store.create("task", "Report")
    store.set_archived(old.id, True)

    assert find_duplicates(store.tasks).names == {"report"}
    assert is_duplicate(kept, find_duplicates(store.tasks))


def test_blank_values_are_ignored(store):
    a = store.create("task", "A")
    b = store.create("task", "B")
    a.reference = ""
    b.reference = "   "

    assert find_duplicates(store.tasks).references == frozenset()


def test_empty_snapshot():
    dups = find_duplicates([])
    assert dups.names == frozenset()
    assert dups.references == frozenset()
