import threading

import collectors
from features import (
    AnonymousGreeter,
    Greeter,
    LIST_OF_LISTS,
    NAMES,
    NUMBERS,
    current_date_time,
    format_timestamp,
    is_even,
    lambda_action,
    new_list,
)
from lazy import LazyStream
from utils import example_file, grep_lines


def main():
    print("\n--- Interfaces and functions ---")
    greeter = AnonymousGreeter()
    print(greeter.default_method())
    print(Greeter.static_method())
    print(lambda_action().execute())
    print(f"Is 4 even? {is_even(4)}")

    LazyStream(NAMES).for_each(print)

    fresh = new_list()
    fresh.append("Hello")
    LazyStream(fresh).for_each(print)

    print("\n--- Streams ---")
    numbers = LazyStream(NUMBERS)

    count = numbers.filter(is_even).map(lambda n: n * 2).count()
    print(f"Count of even numbers doubled: {count}")

    def noisy_even(n):
        print(f"Filter: {n}")
        return is_even(n)

    filtered = numbers.filter(noisy_even)
    print(f"Filtered stream is not executed until terminal operation: {filtered!r}")

    numbers.for_each(lambda n: print(f"Number: {n}"))

    low = numbers.min()
    high = numbers.max()
    print(f"Min: {low.or_else(-1)}, Max: {high.or_else(-1)}")

    distinct_sorted = numbers.distinct().sorted().collect(collectors.to_list())
    print(f"Distinct and sorted numbers: {distinct_sorted}")

    numbers.peek(lambda n: print(f"Peeked: {n}")).skip(5).for_each(print)

    LazyStream.range(1, 5).for_each(print)
    LazyStream.range_closed(1, 5).for_each(print)

    total = numbers.reduce(0, lambda a, b: a + b)
    print(f"Sum of numbers: {total}")

    numbers.filter(is_even).find_first().if_present(lambda e: print(f"First even number: {e}"))

    even_set = numbers.filter(is_even).collect(collectors.to_set())
    print(f"Even numbers in set: {even_set}")

    name_lengths = LazyStream(NAMES).collect(collectors.to_map(lambda name: name, len))
    print(f"Name to length map: {name_lengths}")

    average = numbers.collect(collectors.averaging(int))
    print(f"Average: {average}")

    stats = numbers.collect(collectors.summarizing(int))
    print(f"Summary statistics: {stats}")

    print("\n--- Files ---")
    result = grep_lines(example_file(), "Java")
    if result.ok:
        LazyStream(result.lines).for_each(print)
    else:
        print(result.error)

    flat_mapped = LazyStream(LIST_OF_LISTS).flat_map(lambda inner: inner).to_list()
    print(f"FlatMapped list: {flat_mapped}")

    print("\n--- Parallel ---")
    numbers.parallel().for_each(
        lambda n: print(f"Parallel stream number: {n} ({threading.current_thread().name})")
    )

    print("\n--- Date and time ---")
    today, now_time, now = current_date_time()
    print(f"Current date: {today}")
    print(f"Current time: {now_time}")
    print(f"Current date and time: {now.isoformat()}")
    print(f"Formatted DateTime: {format_timestamp(now)}")


if __name__ == "__main__":
    main()
