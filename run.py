# run.py

import argparse
import time

import config

config.load_env()   # Loads variables from .env

from rich import print, print_json

from ai import gemini
from ai.chat import ChatSession
from core.errors import TravelError
from core.models import ItineraryRequest
from services import weather as wsvc
from services.refresh import WeatherMonitor
from services.trips import TripStore


def print_report(report):
    c = report.current
    print(f"[bold]{c.city}, {c.country}[/]  {wsvc.weather_emoji(c.condition)} {c.temp}°C "
          f"(feels {c.feels_like}°C) – {c.description}")
    print(f"  Wind {c.wind} m/s {wsvc.wind_direction(c.wind_deg or 0)} · Humidity {c.humidity}% · "
          f"Visibility {c.visibility} km · {c.pressure} hPa")
    print(f"  Sunrise {wsvc.format_time(c.sunrise, c.timezone)} · Sunset {wsvc.format_time(c.sunset, c.timezone)}")
    for d in report.forecast:
        print(f"  [yellow]{d.day} {d.date}[/]  {wsvc.weather_emoji(d.condition)} {d.temp}°C "
              f"({d.temp_min}–{d.temp_max}°C) {d.description}, rain {d.pop}%")


def cmd_weather(args):
    if not args.watch:
        print_report(wsvc.fetch_weather(args.city))
        return

    monitor = WeatherMonitor(
        args.city,
        on_update=print_report,
        on_error=lambda e: print(f"[red]⚠️ {e}[/]"),
    )
    with monitor:
        try:
            while True:
                time.sleep(1)
        except KeyboardInterrupt:
            print("[dim]Stopped.[/]")


def cmd_plan(args):
    req = ItineraryRequest(
        destination=args.destination,
        country=args.country,
        days=args.days,
        travel_style=args.style,
        interests=args.interest or [],
    )
    print("[cyan]→ Generating itinerary…[/]")
    itin = gemini.generate_itinerary(req)

    print(f"[bold green]{itin.days}-day {itin.travel_style} trip to {itin.destination}[/]")
    print(itin.overview)
    for day in itin.itinerary:
        print(f"\n[yellow]Day {day.day}: {day.theme}[/]")
        for a in day.activities:
            print(f"  {a.time}  {a.activity} [dim]({a.type}, {a.duration})[/]")
        print(f"  Meals: {day.meals.breakfast} / {day.meals.lunch} / {day.meals.dinner}")
        if day.accommodation:
            print(f"  Stay: {day.accommodation}")
    for tip in itin.tips:
        print(f"  • {tip}")

    if args.save:
        trip = TripStore.from_env().add(itin, image=args.image)
        print(f"[green]Saved as trip {trip['id']}.[/]")


def cmd_chat(args):
    session = ChatSession(args.destination, args.country)
    print(f"[magenta]{session.messages[0].content}[/]")
    while True:
        try:
            text = input("> ")
        except (EOFError, KeyboardInterrupt):
            break
        reply = session.send(text)
        if reply:
            print(f"[magenta]{reply}[/]")


def cmd_places(args):
    for p in gemini.fetch_world_places(args.category, args.region):
        print(f"[bold]{p.name}[/] – {p.location} ({p.rating or '–'}★)  {p.tagline}")


def cmd_place(args):
    d = gemini.get_place_details(args.name, args.category)
    print(f"[bold]{d.name}[/] – {d.location}, {d.continent}")
    print(d.description)
    print(f"[dim]{d.history}[/]")
    print(f"Best time: {d.best_time} · Entry: {d.entry_fee} · Duration: {d.duration}")
    for h in d.highlights:
        print(f"  • {h}")
    print(f"Fun fact: {d.fun_fact}")


def cmd_facts(args):
    facts = gemini.get_destination_insights(args.destination, args.country)
    if not facts:
        print("[dim]No facts available right now.[/]")
    for f in facts:
        print(f"  • {f}")


def cmd_trips(args):
    store = TripStore.from_env()
    if args.remove is not None:
        removed = store.remove(args.remove)
        print("[green]Removed.[/]" if removed else f"[red]No trip {args.remove}.[/]")
        return
    if args.json:
        print_json(data=store.list())
        return
    for t in store.list():
        print(f"[yellow]{t['id']}[/]  {t['days']}-day {t['travelStyle']} trip to {t['destination']} "
              f"[dim](saved {t['savedAt']})[/]")


def main():
    p = argparse.ArgumentParser(prog="wanderai")
    p.add_argument("--log-level", default=None)
    sub = p.add_subparsers(dest="command", required=True)

    w = sub.add_parser("weather")
    w.add_argument("city")
    w.add_argument("--watch", action="store_true", help="refresh periodically until Ctrl-C")
    w.set_defaults(func=cmd_weather)

    pl = sub.add_parser("plan")
    pl.add_argument("destination")
    pl.add_argument("--country", default="")
    pl.add_argument("--days", type=int, default=5)
    pl.add_argument("--style", default="Cultural")
    pl.add_argument("--interest", action="append")
    pl.add_argument("--save", action="store_true")
    pl.add_argument("--image", default=None, help="cover image URL stored with the trip")
    pl.set_defaults(func=cmd_plan)

    c = sub.add_parser("chat")
    c.add_argument("destination")
    c.add_argument("--country", default="")
    c.set_defaults(func=cmd_chat)

    ps = sub.add_parser("places")
    ps.add_argument("category")
    ps.add_argument("--region", default="All")
    ps.set_defaults(func=cmd_places)

    pd = sub.add_parser("place")
    pd.add_argument("name")
    pd.add_argument("--category", default="Tourist Attractions")
    pd.set_defaults(func=cmd_place)

    f = sub.add_parser("facts")
    f.add_argument("destination")
    f.add_argument("--country", default="")
    f.set_defaults(func=cmd_facts)

    t = sub.add_parser("trips")
    t.add_argument("--remove", type=int, default=None)
    t.add_argument("--json", action="store_true")
    t.set_defaults(func=cmd_trips)

    args = p.parse_args()
    config.setup_logging(args.log_level or "WARNING")
    try:
        args.func(args)
    except (TravelError, RuntimeError, ValueError) as e:
        print(f"[red]⚠️ Error: {e}[/]")
        raise SystemExit(1)


if __name__ == "__main__":
    main()
