# signindesk

A small command-line tool for booking desks at the office through the Sign In App
mobile API. It can also cancel bookings, list free desks and your own bookings,
and report your weekly office attendance.

## Installation

```
pip install .
```

This installs the `signin` command.

## Configuration

Settings are kept in a JSON file named `signin.config`. The file lives in the
directory of the running program, which is the directory holding the installed
`signin` script. It contains the bearer token, the map from desk numbers to
API space identifiers, and the attendance-free days.

Start by saving your API bearer token:

```
signin config bearer token
```

Show the current configuration as JSON:

```
signin config
```

Some days should not count as working days, such as holidays or leave. Mark
them by giving a start date (`YYYYMMDD`), a number of consecutive days (at least
one) and a non-empty reason:

```
signin config attendance-free-days 20230814 5 holidays
signin config afd 20231225 1 christmas
```

You do not set up desk numbers by hand. The first time you book a desk number
that is not yet known, the tool searches the site's spaces. A space named like
`Desk 59` is recorded under number 59. The map is then saved to the
configuration file.

## Booking desks

Book desk 59 on one or more specific dates (format `YYYYMMDD`):

```
signin book 59 20230524 20230525
signin b 59 20230524
```

Book desk 59 for three consecutive days starting on a date:

```
signin book 59 3 20230524
```

The result is a table with one row per date. If a date could not be booked,
its row shows the error in place of the zone name. A date argument that is not
a valid `YYYYMMDD` date is reported as `Error! ...` and is not booked as given.

## Cancelling

Cancel every booking you hold on a date:

```
signin cancel 20231008
signin c 20231008
```

## Listing

List the free desks on a date:

```
signin list-free 20230901
signin lf 20230901
```

List your bookings from today up to a date:

```
signin list-bookings 20230901
signin lb 20230901
```

## Attendance

Show a weekly report for the last N weeks, 12 by default. Each week runs from
Monday and shows its ISO week, working days so far, bookings, visits and visits
per working day. Totals and the average office time follow, both up to today
and over the whole weeks. Weekends and the configured free days do not count as
working days.

```
signin attendance 6
signin a
```

List the attendance-free days configured within the last 100 days:

```
signin attendance --listfree
signin a -f
```

## Errors

If a command fails, it prints `Error processing command :  <reason>` on
standard error and exits with status 1. Running `signin` with no command does
nothing.

## Limitations

- All bookings and searches are made against one fixed site (id 34098). Every
  booking is for a single person and asks for a confirmation e-mail.
- There is no command to remove attendance-free days or desk map entries. Edit
  `signin.config` by hand to remove them.
- The tool does not log in for you. You must obtain the bearer token yourself.

## Running the tests

```
pip install ".[test]"
pytest
```