#!/usr/bin/env python3
"""A command line application to list, unpack and pack tar archives"""

import argparse
import os
import posixpath
import shutil
from stat import *
import sys
import time
import yaml

from tarstream.io import defaultBlockSize
from tarstream.tar import *

configDefaults = ('uname', 'gname', 'uid', 'gid', 'comment')

def mkdirs(path):
 os.makedirs(path, exist_ok=True)

def setmtime(path, time):
 os.utime(path, (time, time))

def targetPath(outDir, name):
 """Maps an archive path below outDir, dropping leading slashes and '..' components"""
 return os.path.join(outDir, *posixpath.normpath('/' + name).lstrip('/').split('/'))

def entryFromFile(path, arcname, format=TarFormat.PAX):
 """Builds an entry describing a file on disk"""
 st = os.lstat(path)
 entry = TarEntry(
  arcname,
  mode = S_IMODE(st.st_mode),
  uid = st.st_uid,
  gid = st.st_gid,
  size = 0,
  mtime = TarTime(0, st.st_mtime_ns),
  format = format,
 )
 if S_ISDIR(st.st_mode):
  entry.typeflag = typeDirectory
  entry.name = arcname.rstrip('/') + '/'
 elif S_ISLNK(st.st_mode):
  entry.typeflag = typeSymLink
  entry.linkname = os.readlink(path)
 elif S_ISREG(st.st_mode):
  entry.typeflag = typeRegular
  entry.size = st.st_size
 elif S_ISFIFO(st.st_mode):
  entry.typeflag = typeFifo
 elif S_ISCHR(st.st_mode) or S_ISBLK(st.st_mode):
  entry.typeflag = typeCharDevice if S_ISCHR(st.st_mode) else typeBlockDevice
  entry.devmajor = os.major(st.st_rdev)
  entry.devminor = os.minor(st.st_rdev)
 else:
  raise Exception('Unsupported file type: %s' % path)
 return entry

def entryToDict(entry):
 return {
  'name': entry.name,
  'type': entry.typeflag,
  'format': entry.format.value,
  'mode': entry.mode,
  'uid': entry.uid,
  'gid': entry.gid,
  'uname': entry.uname,
  'gname': entry.gname,
  'size': entry.size,
  'mtime': entry.mtime.toTimestamp() if entry.mtime else None,
  'linkname': entry.linkname or None,
  'comment': entry.comment,
  'extraHeaders': dict(entry.extraHeaders),
 }

def writeYaml(yamlData, file):
 yaml.add_representer(tuple, lambda dumper, data: dumper.represent_list(data))
 yaml.add_representer(dict, lambda dumper, data: dumper.represent_mapping(dumper.DEFAULT_MAPPING_TAG, data, flow_style=False))
 yaml.dump(yamlData, file, sort_keys=False)

def loadConfig(configFile):
 config = yaml.safe_load(configFile) if configFile else None
 return config or {}


def listCommand(file, asYaml=False):
 """Prints the entries of an archive"""
 with TarReader(file) as tar:
  entries = []
  for entry in tar:
   if asYaml:
    entries.append(entryToDict(entry))
   else:
    mtime = time.strftime('%Y-%m-%d %H:%M', time.gmtime(entry.mtime.seconds if entry.mtime else 0))
    line = '%s %s/%s %10d %s %s' % (filemode(fileMode(entry)), entry.uname or entry.uid, entry.gname or entry.gid, entry.size or 0, mtime, entry.name)
    if entry.isSymbolicLink() or entry.isHardLink():
     line += ' -> ' + entry.linkname
    print(line)
  if asYaml:
   writeYaml(entries, sys.stdout)


def unpackCommand(file, outDir):
 """Extracts regular files and directories to the specified directory"""
 mkdirs(outDir)
 entries = []
 mtimes = []
 with TarReader(file) as tar:
  for entry in tar:
   fn = targetPath(outDir, entry.name)
   entries.append(entryToDict(entry))
   if entry.isDirectory():
    mkdirs(fn)
   elif entry.isRegularFile() or entry.isSparse():
    print('Extracting %s' % entry.name)
    mkdirs(os.path.dirname(fn))
    with open(fn, 'wb') as dstFile:
     shutil.copyfileobj(tar, dstFile)
   else:
    continue
   if entry.mtime:
    mtimes.append((fn, entry.mtime.toTimestamp()))

 # Directories are touched by the files extracted into them
 for fn, mtime in reversed(mtimes):
  setmtime(fn, mtime)

 with open(os.path.join(outDir, 'entries.yaml'), 'w') as yamlFile:
  writeYaml(entries, yamlFile)


def walkTree(inDir):
 """Yields (path, arcname) for a directory tree, parents first"""
 for root, dirs, files in os.walk(inDir):
  dirs.sort()
  for name in dirs + sorted(files):
   path = os.path.join(root, name)
   yield path, os.path.relpath(path, inDir).replace(os.sep, '/')


def packCommand(inDir, outFile, configFile=None, format=None):
 """Packs a directory tree into an archive"""
 config = loadConfig(configFile)
 format = TarFormat(format or config.get('format', TarFormat.PAX.value))

 with TarWriter(outFile, config.get('blockSize', defaultBlockSize)) as tar:
  for path, arcname in walkTree(inDir):
   entry = entryFromFile(path, arcname, format)
   for key in configDefaults:
    if key in config:
     setattr(entry, key, config[key])
   entry.extraHeaders.update(config.get('extraHeaders', {}))
   print('Adding %s' % entry.name)
   if entry.isRegularFile():
    with open(path, 'rb') as srcFile:
     tar.addFile(entry, srcFile)
   else:
    tar.addFile(entry)


def main():
 """Command line main"""
 parser = argparse.ArgumentParser()
 subparsers = parser.add_subparsers(dest='command', title='commands')
 listArchive = subparsers.add_parser('list', description='List the contents of a tar archive')
 listArchive.add_argument('-f', dest='inFile', type=argparse.FileType('rb'), required=True, help='input file')
 listArchive.add_argument('-y', dest='asYaml', action='store_true', help='print entry metadata as yaml')
 unpack = subparsers.add_parser('unpack', description='Unpack a tar archive')
 unpack.add_argument('-f', dest='inFile', type=argparse.FileType('rb'), required=True, help='input file')
 unpack.add_argument('-o', dest='outDir', required=True, help='output directory')
 pack = subparsers.add_parser('pack', description='Pack a directory into a tar archive')
 pack.add_argument('-i', dest='inDir', required=True, help='input directory')
 pack.add_argument('-o', dest='outFile', type=argparse.FileType('wb'), required=True, help='output file')
 pack.add_argument('-c', dest='configFile', type=argparse.FileType('r'), help='configuration file (yaml)')
 pack.add_argument('-t', dest='format', choices=[f.value for f in TarFormat], help='archive format')

 args = parser.parse_args()
 if args.command == 'list':
  listCommand(args.inFile, args.asYaml)
 elif args.command == 'unpack':
  unpackCommand(args.inFile, args.outDir)
 elif args.command == 'pack':
  packCommand(args.inDir, args.outFile, args.configFile, args.format)
 else:
  parser.print_usage()


if __name__ == '__main__':
 main()
